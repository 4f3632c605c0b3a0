from collections import Counter
from typing import Any, Dict

from jellyfin_mcp.domain.ports import MediaLibrary


RECENT_LIMIT = 30
TOP_GENRES = 10

_TYPE_BUCKETS = {
    'Movie': 'movies',
    'Series': 'series',
    'Episode': 'episodes',
    'Audio': 'music',
    'MusicVideo': 'music',
}


def get_library_snapshot(library: MediaLibrary) -> Dict[str, Any]:
    """Small overview of recent additions for conversational cold starts."""
    recent = library.list_items({
        'SortBy': 'DateCreated',
        'SortOrder': 'Descending',
        'Limit': RECENT_LIMIT,
        'Recursive': True,
    })
    items = recent.get('Items') or []

    genres: Counter = Counter()
    counts = {'movies': 0, 'series': 0, 'episodes': 0, 'music': 0}
    for item in items:
        genres.update(item.get('Genres') or [])
        bucket = _TYPE_BUCKETS.get(item.get('Type'))
        if bucket:
            counts[bucket] += 1

    return {
        'summary': f"Recent additions: {len(items)}",
        'counts': counts,
        'top_genres': [[genre, n] for genre, n in genres.most_common(TOP_GENRES)],
    }
