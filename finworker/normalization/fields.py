from collections.abc import Mapping
from typing import Any


def dig(source: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; None when any hop is missing."""
    current = source
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def first_present(source: Any, *paths: str) -> Any:
    """Return the first value along ``paths`` that is not None."""
    for path in paths:
        value = dig(source, path)
        if value is not None:
            return value
    return None


def first_text(source: Any, *paths: str) -> str | None:
    value = first_present(source, *paths)
    if value is None:
        return None
    text = str(value).strip()
    return text or None
