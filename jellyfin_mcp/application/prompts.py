EXTRACT_FILTERS_PROMPT = """\
You convert a casual request into Jellyfin filters.
Return JSON with keys: include_item_types[], genres[], people[], studios[], year_range[2], runtime_minutes[2], kid_safe(boolean), text.
Prefer genres/people that actually appear in the user library if provided.
"""

RECOMMENDATION_RATIONALE_PROMPT = """\
Given a Jellyfin item and a list of signals (e.g., "genres: Noir, Mystery", "similar era", "mood matches"),
write a one-sentence reason a human will understand. Avoid spoilers.
"""


def extract_filters(request: str, library_genres: str = '') -> str:
    prompt = f"{EXTRACT_FILTERS_PROMPT}\nRequest: {request}\n"
    if library_genres:
        prompt += f"Library genres: {library_genres}\n"
    return prompt


def recommendation_rationale(item_name: str, signals: str) -> str:
    return f"{RECOMMENDATION_RATIONALE_PROMPT}\nItem: {item_name}\nSignals: {signals}\n"
