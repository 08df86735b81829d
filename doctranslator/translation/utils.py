"""
Translation utility functions for field paths and nested JSON updates.
"""

from typing import Any, Dict, Iterator, Tuple


def join_path(path: str, key: str) -> str:
    """
    Append an object key to a field path.

    Example:
        >>> join_path("attractions[0]", "name")
        'attractions[0].name'
    """
    return f"{path}.{key}" if path else str(key)


def index_path(path: str, index: int) -> str:
    """
    Append a list index to a field path.

    Example:
        >>> index_path("attractions", 2)
        'attractions[2]'
    """
    return f"{path}[{index}]"


def iter_string_fields(obj: Any, path: str = "") -> Iterator[Tuple[str, str]]:
    """
    Walk a JSON tree and yield (field_path, value) for every string value.

    Keys starting with an underscore (metadata) are not visited.
    """
    if isinstance(obj, dict):
        for key, value in obj.items():
            if str(key).startswith('_'):
                continue
            yield from iter_string_fields(value, join_path(path, key))
    elif isinstance(obj, list):
        for i, item in enumerate(obj):
            yield from iter_string_fields(item, index_path(path, i))
    elif isinstance(obj, str) and path:
        yield path, obj


def update_json_values(target: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge updates into target in place.

    Only keys already present in target are overwritten; nested dictionaries
    are merged recursively. Keys that do not exist are ignored.

    Args:
        target: JSON object to update
        updates: Partial object with new values

    Returns:
        The updated target
    """
    for key, value in updates.items():
        if key not in target:
            continue
        if isinstance(value, dict) and isinstance(target[key], dict):
            update_json_values(target[key], value)
        else:
            target[key] = value
    return target
