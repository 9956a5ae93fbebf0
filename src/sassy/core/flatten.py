"""
Dot-key flattening for nested theme sections.

``{"editor": {"background": x}}`` and ``{"editor.background": x}`` both
collapse to the flat key ``editor.background``. Two different nestings
that collapse to the same key are an error.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from .errors import DuplicateKeyError, ErrorContext


def _walk(data: Mapping[str, Any], prefix: str) -> Iterator[tuple[str, Any]]:
    # Explicit stack keeps deep nesting off the Python call stack.
    stack: list[Iterator[tuple[str, Any]]] = [iter(data.items())]
    prefixes = [prefix]
    while stack:
        try:
            key, value = next(stack[-1])
        except StopIteration:
            stack.pop()
            prefixes.pop()
            continue
        flat = f"{prefixes[-1]}.{key}" if prefixes[-1] else str(key)
        if isinstance(value, Mapping) and value:
            stack.append(iter(value.items()))
            prefixes.append(flat)
        else:
            yield flat, value


def flatten_mapping(
    data: Mapping[str, Any],
    *,
    document: str | None = None,
    section: str | None = None,
) -> dict[str, Any]:
    """Flatten nested mappings into an ordered dot-keyed dict.

    Args:
        data: Nested mapping, leaves are any non-mapping value
        document: Origin used in error context
        section: Section name used in error context (e.g. "colors")

    Returns:
        Flat dict in first-declaration order.

    Raises:
        DuplicateKeyError: If two nestings produce the same key.
    """
    flat: dict[str, Any] = {}
    for key, value in _walk(data, ""):
        if key in flat:
            where = f"{section}.{key}" if section else key
            raise DuplicateKeyError(
                f"Key '{key}' is defined more than once after flattening",
                ErrorContext(document=document, key=where),
            )
        flat[key] = value
    return flat


def is_group_of(group: str, key: str) -> bool:
    """True when ``key`` lives under ``group`` (``editor`` groups ``editor.background``)."""
    return key.startswith(group + ".")
