import hashlib
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml


@dataclass(frozen=True)
class LoadedSpec:
    """Parsed YAML tool specification with a content fingerprint."""

    path: str
    yaml_text: str
    data: Any
    etag: str
    mtime: float


_cache: Dict[str, LoadedSpec] = {}


def load_spec(spec_path: str) -> LoadedSpec:
    """Load the YAML spec, reusing the cached parse while the file is unchanged."""
    path = os.path.abspath(spec_path)
    mtime = os.stat(path).st_mtime

    cached = _cache.get(path)
    if cached and cached.mtime == mtime:
        return cached

    with open(path, 'r', encoding='utf-8') as f:
        yaml_text = f.read()

    loaded = LoadedSpec(
        path=path,
        yaml_text=yaml_text,
        data=yaml.safe_load(yaml_text),
        etag=hashlib.sha256(yaml_text.encode('utf-8')).hexdigest()[:16],
        mtime=mtime,
    )
    _cache[path] = loaded
    return loaded


def get_spec_section(section_path: str, spec: LoadedSpec) -> Optional[Any]:
    """Walk a ``/``-separated path into the tool specification; numeric parts index lists."""
    node = spec.data
    for part in (p.strip() for p in section_path.split('/')):
        if not part:
            continue
        if isinstance(node, dict) and part in node:
            node = node[part]
        elif isinstance(node, list):
            if not part.isdigit() or int(part) >= len(node):
                return None
            node = node[int(part)]
        else:
            return None
    return node


def spec_top_level_index(spec: LoadedSpec) -> Dict[str, Any]:
    keys = list(spec.data.keys()) if isinstance(spec.data, dict) else []
    return {'keys': keys, 'etag': spec.etag}


def clear_cache() -> None:
    _cache.clear()
