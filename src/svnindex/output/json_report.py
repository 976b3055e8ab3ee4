"""JSON reporter for changes and path data."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional

from svnindex.svn.models import PathChange, PathData


def change_to_dict(change: PathChange) -> Dict[str, Any]:
    return {
        "revision": change.revision,
        "path": change.path,
        "change": change.change.value,
        "is_copy": change.is_copy,
    }


def path_data_to_dict(data: PathData, *, include_text: bool = True) -> Dict[str, Any]:
    """Convert PathData to a JSON-serialisable dict."""
    result: Dict[str, Any] = {
        "path": data.path,
        "size": data.size,
        "author": data.author,
        "timestamp": data.timestamp.isoformat() if data.timestamp else None,
        "revision_first": data.revision_first,
        "revision_last": data.revision_last,
        "is_directory": data.is_directory,
        "properties": dict(sorted(data.properties.items())),
        "has_text": data.text is not None,
    }
    if include_text:
        result["text"] = data.text
    return result


def render_changes(changes: Iterable[PathChange]) -> str:
    """Return one JSON object per line, suitable for streaming into an indexer."""
    return "\n".join(json.dumps(change_to_dict(c)) for c in changes)


def render_path_data(
    items: Dict[str, Optional[PathData]],
    *,
    include_text: bool = True,
) -> str:
    """Return a JSON document keyed by requested path; missing paths map to null."""
    out: Dict[str, Optional[Dict[str, Any]]] = {}
    for path, data in items.items():
        out[path] = path_data_to_dict(data, include_text=include_text) if data else None
    return json.dumps(out, indent=2)
