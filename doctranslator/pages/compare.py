"""Source change detection between two versions of a document."""

from typing import Any, List

from doctranslator.translation.utils import index_path, join_path


def compare_sources(old: Any, new: Any, path: str = "") -> List[str]:
    """
    List the paths whose values differ between two document versions.

    Added and removed keys or list elements count as changes. A path whose
    type changed is reported once, without descending into it.

    Example:
        >>> compare_sources({"a": {"b": [1, 2]}}, {"a": {"b": [1, 3]}, "c": 1})
        ['a.b[1]', 'c']
    """
    if isinstance(old, dict) and isinstance(new, dict):
        changes = []
        for key in list(old) + [k for k in new if k not in old]:
            child = join_path(path, key)
            if key not in old or key not in new:
                changes.append(child)
            else:
                changes.extend(compare_sources(old[key], new[key], child))
        return changes

    if isinstance(old, list) and isinstance(new, list):
        changes = []
        for i in range(max(len(old), len(new))):
            child = index_path(path, i)
            if i >= len(old) or i >= len(new):
                changes.append(child)
            else:
                changes.extend(compare_sources(old[i], new[i], child))
        return changes

    if type(old) is not type(new) or old != new:
        return [path]
    return []
