import re
from typing import Any, Dict, List, Optional

from jellyfin_mcp.domain.entities import Recommendation


MAX_RECOMMENDATIONS = 50

_WORD_SPLIT_PATTERN = re.compile(r"\W+")


def _shared(a: List[str], b: List[str]) -> List[str]:
    """Items of ``b`` also present in ``a``, in ``b``'s order."""
    seen = set(a)
    return [x for x in b if x in seen]


def _people_names(item: Dict[str, Any]) -> List[str]:
    return [p.get('Name') for p in item.get('People') or [] if p.get('Name')]


def mood_tokens(mood: Optional[str]) -> List[str]:
    return [t for t in _WORD_SPLIT_PATTERN.split((mood or '').lower()) if t]


def score_candidate(candidate: Dict[str, Any],
                    seed: Optional[Dict[str, Any]] = None,
                    tokens: Optional[List[str]] = None) -> Recommendation:
    """Score one candidate against a seed item and mood tokens.

    Scoring:
    - 2 points per shared genre
    - 3 points per shared person
    - up to 5 points for a nearby production year
    - 1 point per mood token found in name, overview or genres
    """
    score = 0
    why: List[str] = []

    if seed:
        genres = _shared(seed.get('Genres') or [], candidate.get('Genres') or [])
        if genres:
            score += 2 * len(genres)
            why.append(f"genres: {', '.join(genres)}")

        people = _shared(_people_names(seed), _people_names(candidate))
        if people:
            score += 3 * len(people)
            why.append(f"people: {', '.join(people)}")

        seed_year = seed.get('ProductionYear')
        year = candidate.get('ProductionYear')
        if seed_year and year:
            bump = max(0, 5 - min(abs(seed_year - year), 5))
            score += bump
            if bump:
                why.append("similar era")

    if tokens:
        text = ' '.join([
            candidate.get('Name') or '',
            candidate.get('Overview') or '',
            ' '.join(candidate.get('Genres') or []),
        ]).lower()
        hits = sum(1 for t in tokens if t in text)
        if hits:
            score += hits
            why.append(f"mood matches ({hits})")

    return Recommendation(item_id=candidate.get('Id', ''), score=score, why=why)


def simple_rank(candidates: List[Dict[str, Any]],
                seed: Optional[Dict[str, Any]] = None,
                mood: Optional[str] = None) -> List[Recommendation]:
    """Rank candidates by similarity; zero scores are dropped."""
    tokens = mood_tokens(mood)
    scored = [score_candidate(c, seed, tokens) for c in candidates]
    ranked = sorted((r for r in scored if r.score > 0), key=lambda r: r.score, reverse=True)
    return ranked[:MAX_RECOMMENDATIONS]
