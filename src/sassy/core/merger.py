"""
Import chain merging.

Combines an ordered chain of ThemeDocuments (base first, imports after it
in declared order) into one EffectiveDocument. Later documents override
earlier ones.

Each output layer has its own strategy, selected by LayerKind:

- colors: independent flat keys, later overwrites, first position kept
- tokenColors: append in order; a later rule with exactly the same scope
  set as an earlier document's rule replaces it in place
- semanticTokenColors: bare later value replaces; record later value is
  deep-merged field by field (a bare earlier value is promoted to
  ``{foreground: value}`` first)

Variables and palette merge like colors. Scalar metadata is last writer
wins; ``custom`` is deep-merged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from .errors import ErrorContext, MergeConflictError, SassyError, attach_import_chain
from .ir import (
    ColorEntry,
    EffectiveDocument,
    Expr,
    LayerKind,
    SemanticEntry,
    SemanticStyle,
    ThemeDocument,
    TokenColorRule,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Shape checks
# =============================================================================


def _prefixes(key: str) -> Iterable[str]:
    parts = key.split(".")
    for i in range(1, len(parts)):
        yield ".".join(parts[:i])


def _check_shapes(
    existing: Iterable[str],
    incoming: Iterable[str],
    *,
    section: str,
    document: str,
) -> None:
    """Fail when a key is a group in one document and a leaf in another."""
    leaves = set(existing)
    groups = {prefix for key in leaves for prefix in _prefixes(key)}
    for key in incoming:
        if key in groups:
            raise MergeConflictError(
                f"'{section}.{key}' is a single value here but a group of keys in an "
                "earlier document",
                ErrorContext(document=document, key=f"{section}.{key}"),
            )
        for prefix in _prefixes(key):
            if prefix in leaves:
                raise MergeConflictError(
                    f"'{section}.{prefix}' is a group of keys here but a single value in an "
                    "earlier document",
                    ErrorContext(document=document, key=f"{section}.{key}"),
                )


def _merge_flat(
    accumulated: dict[str, Expr],
    incoming: Mapping[str, Expr],
    *,
    section: str,
    document: str,
) -> dict[str, Expr]:
    _check_shapes(accumulated, incoming, section=section, document=document)
    merged = dict(accumulated)
    merged.update(incoming)
    return merged


def deep_merge(
    base: Mapping[str, Any], override: Mapping[str, Any], *, path: str = "", document: str = ""
) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = dict(base)
    for key, value in override.items():
        where = f"{path}.{key}" if path else str(key)
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value, path=where, document=document)
        elif key in result and (isinstance(current, Mapping) != isinstance(value, Mapping)):
            raise MergeConflictError(
                f"'{where}' is a mapping in one document and a scalar in another",
                ErrorContext(document=document, key=where),
            )
        else:
            result[key] = value
    return result


# =============================================================================
# Layer strategies
# =============================================================================


def _merge_colors(
    accumulated: tuple[ColorEntry, ...], incoming: tuple[ColorEntry, ...], document: str
) -> tuple[ColorEntry, ...]:
    """Independent keys: later overwrites, non-overlapping keys accumulate."""
    _check_shapes(
        (e.key for e in accumulated), (e.key for e in incoming), section="colors", document=document
    )
    by_key = {entry.key: entry for entry in accumulated}
    for entry in incoming:
        by_key[entry.key] = entry
    return tuple(by_key.values())


def _merge_token_colors(
    accumulated: tuple[TokenColorRule, ...],
    incoming: tuple[TokenColorRule, ...],
    document: str,
) -> tuple[TokenColorRule, ...]:
    """First-match ordering: replace equal scope sets in place, append the rest."""
    result = list(accumulated)
    # Only rules from earlier documents are replaceable, each at most once.
    positions: dict[frozenset[str], int] = {}
    for i, rule in enumerate(accumulated):
        positions.setdefault(rule.scope_set, i)

    for rule in incoming:
        pos = positions.pop(rule.scope_set, None)
        if pos is None:
            result.append(rule)
        else:
            logger.debug(
                f"{document}: rule {rule.label} replaces {result[pos].label} at position {pos}"
            )
            result[pos] = rule
    return tuple(result)


def merge_semantic_value(
    earlier: Expr | SemanticStyle | None, later: Expr | SemanticStyle | None
) -> Expr | SemanticStyle | None:
    """Combine two values for the same semantic selector."""
    if not isinstance(later, SemanticStyle) or earlier is None:
        return later
    if not isinstance(earlier, SemanticStyle):
        earlier = SemanticStyle(foreground=earlier)
    return SemanticStyle(
        foreground=later.foreground if later.foreground is not None else earlier.foreground,
        font_style=later.font_style if later.font_style is not None else earlier.font_style,
    )


def _merge_semantic(
    accumulated: tuple[SemanticEntry, ...],
    incoming: tuple[SemanticEntry, ...],
    document: str,
) -> tuple[SemanticEntry, ...]:
    """Per selector: bare replaces, record deep-merges."""
    by_selector = {entry.selector: entry for entry in accumulated}
    for entry in incoming:
        previous = by_selector.get(entry.selector)
        if previous is None:
            by_selector[entry.selector] = entry
            continue
        by_selector[entry.selector] = SemanticEntry(
            selector=entry.selector,
            value=merge_semantic_value(previous.value, entry.value),
            origin=entry.origin,
        )
    return tuple(by_selector.values())


LayerStrategy = Callable[[tuple[Any, ...], tuple[Any, ...], str], tuple[Any, ...]]

LAYER_STRATEGIES: dict[LayerKind, LayerStrategy] = {
    LayerKind.COLORS: _merge_colors,
    LayerKind.TOKEN_COLORS: _merge_token_colors,
    LayerKind.SEMANTIC_TOKEN_COLORS: _merge_semantic,
}

_LAYER_FIELDS: dict[LayerKind, str] = {
    LayerKind.COLORS: "colors",
    LayerKind.TOKEN_COLORS: "token_colors",
    LayerKind.SEMANTIC_TOKEN_COLORS: "semantic_token_colors",
}


def merge_layer(
    kind: LayerKind, accumulated: tuple[Any, ...], incoming: tuple[Any, ...], document: str
) -> tuple[Any, ...]:
    """Apply the merge strategy registered for ``kind``."""
    return LAYER_STRATEGIES[kind](accumulated, incoming, document)


# =============================================================================
# Chain merge
# =============================================================================


def merge_chain(chain: Sequence[ThemeDocument]) -> EffectiveDocument:
    """Merge an ordered document chain into one EffectiveDocument.

    Args:
        chain: Documents, base first, overrides after it in declared order

    Returns:
        A new EffectiveDocument; the inputs are not modified.

    Raises:
        MergeConflictError: If a key changes shape between documents.
        ValueError: If the chain is empty.
    """
    if not chain:
        raise ValueError("Cannot merge an empty document chain")

    meta: dict[str, Any] = {
        "name": None,
        "type": None,
        "semantic_highlighting": None,
        "schema_url": None,
    }
    custom: dict[str, Any] = {}
    variables: dict[str, Expr] = {}
    palette: dict[str, Expr] = {}
    layers: dict[LayerKind, tuple[Any, ...]] = {kind: () for kind in LayerKind}
    definitions: dict[str, str] = {}

    for document in chain:
        origin = document.origin
        for field_name in meta:
            value = getattr(document, field_name)
            if value is not None:
                meta[field_name] = value
        try:
            custom = deep_merge(custom, document.custom, path="config.custom", document=origin)
            variables = _merge_flat(variables, document.variables, section="vars", document=origin)
            palette = _merge_flat(palette, document.palette, section="palette", document=origin)
            for kind, field_name in _LAYER_FIELDS.items():
                incoming = getattr(document, field_name)
                layers[kind] = merge_layer(kind, layers[kind], incoming, origin)
        except SassyError as e:
            attach_import_chain(e, document.imported_via)
            raise
        definitions.update((f"vars.{name}", origin) for name in document.variables)
        definitions.update((f"palette.{name}", origin) for name in document.palette)

    sources = tuple(document.origin for document in chain)
    logger.debug(f"Merged {len(chain)} document(s): {' -> '.join(sources)}")

    return EffectiveDocument(
        **meta,
        custom=custom,
        variables=variables,
        palette=palette,
        colors=layers[LayerKind.COLORS],
        token_colors=layers[LayerKind.TOKEN_COLORS],
        semantic_token_colors=layers[LayerKind.SEMANTIC_TOKEN_COLORS],
        sources=sources,
        definitions=definitions,
        import_chains={d.origin: d.imported_via for d in chain if d.imported_via},
    )
