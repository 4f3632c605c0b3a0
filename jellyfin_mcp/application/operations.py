"""Library operations: argument mapping and response shaping.

Every handler receives a library client already bound to a session and a
validated input model, and returns a JSON-serializable dict.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel

from jellyfin_mcp.application.ranker import simple_rank
from jellyfin_mcp.application.schemas import (
    Filters, GetStreamInfoInput, ListItemsInput, NextUpInput,
    RecommendSimilarInput, SearchItemsInput,
)
from jellyfin_mcp.domain.ports import MediaLibrary


LIST_HARD_LIMIT = 200
SEARCH_HARD_LIMIT = 100
CANDIDATE_POOL = 200

VIEW_ITEM_TYPES = {
    'Movies': 'Movie',
    'Shows': 'Series',
    'Episodes': 'Episode',
    'Music': 'Audio,MusicVideo',
}


@dataclass(frozen=True)
class Operation:
    """A callable library operation that requires a session."""

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[MediaLibrary, Any], Dict[str, Any]]


def parse_cursor(cursor: Optional[str]) -> int:
    if not cursor:
        return 0
    try:
        return max(0, int(cursor))
    except ValueError:
        return 0


def apply_filters(params: Dict[str, Any], filters: Filters) -> None:
    """Map structured filters onto media server query parameters."""
    if filters.include_item_types:
        params['IncludeItemTypes'] = ','.join(filters.include_item_types)
    if filters.genres:
        params['Genres'] = ','.join(filters.genres)
    if filters.people:
        params['Person'] = ','.join(filters.people)
    if filters.studios:
        params['Studios'] = ','.join(filters.studios)
    if filters.year_range:
        min_year, max_year = filters.year_range
        params['Years'] = f"{min_year},{max_year}"
    if filters.runtime_minutes:
        params['MinRuntime'], params['MaxRuntime'] = filters.runtime_minutes
    if filters.kid_safe:
        params['MaxOfficialRating'] = 'PG'
    if filters.text:
        params['SearchTerm'] = filters.text


def _page(items: list, total: int, start: int, limit: int) -> Dict[str, Any]:
    result: Dict[str, Any] = {'items': items, 'total': total}
    if len(items) == limit:
        result['next_cursor'] = str(start + limit)
    return result


def list_items(library: MediaLibrary, data: ListItemsInput) -> Dict[str, Any]:
    start = parse_cursor(data.cursor)
    params: Dict[str, Any] = {
        'Recursive': True,
        'Limit': min(data.limit, LIST_HARD_LIMIT),
        'SortBy': data.sort,
        'SortOrder': 'Descending',
    }
    if data.view != 'All':
        params['IncludeItemTypes'] = VIEW_ITEM_TYPES[data.view]
    if data.filters:
        apply_filters(params, data.filters)
    if start:
        params['StartIndex'] = start

    response = library.list_items(params)
    items = response.get('Items') or []
    return _page(items, response.get('TotalRecordCount') or 0, start, data.limit)


def search_items(library: MediaLibrary, data: SearchItemsInput) -> Dict[str, Any]:
    start = parse_cursor(data.cursor)
    limit = min(data.limit, SEARCH_HARD_LIMIT)

    if data.query:
        response = library.search_hints(data.query, limit, start or None)
        items = response.get('SearchHints') or []
    else:
        params: Dict[str, Any] = {'Recursive': True, 'Limit': limit}
        if data.filters:
            apply_filters(params, data.filters)
        if start:
            params['StartIndex'] = start
        response = library.list_items(params)
        items = response.get('Items') or []

    items = items[:limit]
    return _page(items, response.get('TotalRecordCount') or len(items), start, limit)


def next_up(library: MediaLibrary, data: NextUpInput) -> Dict[str, Any]:
    response = library.next_up(data.series_id, data.limit)
    return {
        'items': response.get('Items') or [],
        'total': response.get('TotalRecordCount') or 0,
    }


def recommend_similar(library: MediaLibrary, data: RecommendSimilarInput) -> Dict[str, Any]:
    seed = library.item(data.seed_item_id) if data.seed_item_id else None

    candidates = library.list_items({
        'Recursive': True,
        'Limit': CANDIDATE_POOL,
        'IncludeItemTypes': 'Movie,Series',
        'Fields': 'Genres,People,Overview,ProductionYear',
    }).get('Items') or []
    if seed:
        # Never recommend the seed itself
        candidates = [c for c in candidates if c.get('Id') != seed.get('Id')]

    by_id = {c.get('Id'): c for c in candidates}
    items = []
    for rec in simple_rank(candidates, seed=seed, mood=data.mood)[:data.limit]:
        items.append({**by_id.get(rec.item_id, {}), 'score': rec.score, 'why': rec.why})
    return {'items': items}


def get_stream_info(library: MediaLibrary, data: GetStreamInfoInput) -> Dict[str, Any]:
    info = library.stream_info(data.item_id)
    sources = info.get('MediaSources') or [{}]
    first = sources[0] or {}
    return {
        'can_direct_play': bool(first.get('SupportsDirectStream', False)),
        'container': first.get('Container') or 'unknown',
    }


OPERATIONS: Dict[str, Operation] = {
    op.name: op for op in (
        Operation('list_items', "Filtered listing from the user's library",
                  ListItemsInput, list_items),
        Operation('search_items', "Search by text and/or structured filters",
                  SearchItemsInput, search_items),
        Operation('next_up', "Personalized continuation for TV",
                  NextUpInput, next_up),
        Operation('recommend_similar', "Similar items with rationale strings",
                  RecommendSimilarInput, recommend_similar),
        Operation('get_stream_info', "Playback capability data",
                  GetStreamInfoInput, get_stream_info),
    )
}
