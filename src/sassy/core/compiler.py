"""
Compilation entry points.

Pipeline: merge imports -> resolve -> (lint, emit). Lint and emit read
the same immutable documents and run side by side. Any fatal error
aborts the compile and no artifact is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .emitter import emit, scope_field
from .errors import make_unresolved_error
from .ir import EffectiveDocument, Expr, LintFinding, Reference, SemanticStyle, ThemeDocument
from .lint import LintSettings, lint_document
from .merger import merge_chain
from .resolver import Environment, Namespace, NodeKey, Resolver, TraceStep, resolve_document

logger = logging.getLogger(__name__)

Source = Sequence[ThemeDocument] | ThemeDocument | EffectiveDocument


@dataclass
class CompileSettings:
    """Knobs for one compile."""

    workers: int = 1
    lint: LintSettings = field(default_factory=LintSettings)


class CompileResult(NamedTuple):
    """Compiled artifact plus the lint findings collected alongside it."""

    artifact: dict[str, Any]
    findings: list[LintFinding]


def effective_document(source: Source) -> EffectiveDocument:
    """Merge a chain (or wrap a single document) into an EffectiveDocument."""
    if isinstance(source, EffectiveDocument):
        return source
    if isinstance(source, ThemeDocument):
        return merge_chain([source])
    return merge_chain(source)


def compile_theme(source: Source, *, settings: CompileSettings | None = None) -> CompileResult:
    """Compile a document chain into an editor theme.

    Args:
        source: Document chain (base first), a single document, or an
            already merged EffectiveDocument
        settings: Optional compile settings

    Returns:
        CompileResult(artifact, findings).

    Raises:
        SassyError: Any fatal parse, merge, resolution or emission error.
    """
    settings = settings or CompileSettings()
    effective = effective_document(source)
    resolved = resolve_document(effective, workers=settings.workers)

    with ThreadPoolExecutor(max_workers=2) as pool:
        findings_future = pool.submit(lint_document, effective, settings.lint)
        artifact_future = pool.submit(emit, resolved)
        artifact = artifact_future.result()
        findings = findings_future.result()

    logger.info(
        f"Compiled {effective.name or effective.origin}: {len(artifact.get('colors', {}))} colors, "
        f"{len(artifact.get('tokenColors', []))} token rules, {len(findings)} finding(s)"
    )
    return CompileResult(artifact=artifact, findings=findings)


def lint(source: Source, *, settings: LintSettings | None = None) -> list[LintFinding]:
    """Run static analysis without resolving or emitting."""
    return lint_document(effective_document(source), settings)


def _source_text(expr: Expr | None) -> str | None:
    return None if expr is None else str(expr)


def _settings_source(foreground: Expr | None, font_style: str | None) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    if foreground is not None:
        settings["foreground"] = str(foreground)
    if font_style is not None:
        settings["fontStyle"] = font_style
    return settings


def proof(source: Source) -> dict[str, Any]:
    """The composed source with every import applied, before resolution.

    Expressions are written back as source text, so the result reads (and
    parses) as one import-free theme source.
    """
    document = effective_document(source)

    config: dict[str, Any] = {}
    if document.name is not None:
        config["name"] = document.name
    if document.type is not None:
        config["type"] = document.type.value
    if document.schema_url is not None:
        config["$schema"] = document.schema_url
    if document.semantic_highlighting is not None:
        config["semanticHighlighting"] = document.semantic_highlighting
    if document.custom:
        config["custom"] = document.custom

    rules = []
    for rule in document.token_colors:
        out: dict[str, Any] = {}
        if rule.name is not None:
            out["name"] = rule.name
        scope = scope_field(rule)
        if scope is not None:
            out["scope"] = scope
        out["settings"] = _settings_source(rule.settings.foreground, rule.settings.font_style)
        rules.append(out)

    semantic: dict[str, Any] = {}
    for entry in document.semantic_token_colors:
        if isinstance(entry.value, SemanticStyle):
            semantic[entry.selector] = _settings_source(
                entry.value.foreground, entry.value.font_style
            )
        else:
            semantic[entry.selector] = _source_text(entry.value)

    composed: dict[str, Any] = {}
    if config:
        composed["config"] = config
    if document.variables:
        composed["vars"] = {name: str(expr) for name, expr in document.variables.items()}
    if document.palette:
        composed["palette"] = {name: str(expr) for name, expr in document.palette.items()}
    composed["theme"] = {
        "colors": {entry.key: _source_text(entry.value) for entry in document.colors},
        "tokenColors": rules,
        "semanticTokenColors": semantic,
    }
    return composed


def _trace_target(
    document: EffectiveDocument, env: Environment, key_path: str
) -> tuple[Expr | None, NodeKey | None]:
    section, _, rest = key_path.partition(".")

    if section == "colors":
        for entry in document.colors:
            if entry.key == rest:
                return entry.value, NodeKey(Namespace.COLORS, rest)
    elif section in ("vars", "palette") and rest:
        table = document.variables if section == "vars" else document.palette
        if rest in table:
            return table[rest], NodeKey(Namespace(section), rest)
    elif section == "tokenColors" and rest.isdigit():
        index = int(rest) - 1
        if 0 <= index < len(document.token_colors):
            return document.token_colors[index].settings.foreground, None
    elif section == "semanticTokenColors":
        for entry in document.semantic_token_colors:
            if entry.selector == rest:
                value = entry.value
                if isinstance(value, SemanticStyle):
                    value = value.foreground
                return value, None

    key = env.lookup(Reference(name=key_path))
    if key is not None:
        return env.expression(key), key
    raise make_unresolved_error(key_path, "trace request", document.origin)


def resolve_trace(
    source: Source, key_path: str, *, settings: CompileSettings | None = None
) -> list[TraceStep]:
    """Resolution trail for one key.

    Key paths: ``colors.<key>``, ``vars.<name>`` (or a bare variable
    name), ``palette.<name>``, ``tokenColors.<n>`` (1-based) and
    ``semanticTokenColors.<selector>``.

    Returns:
        Ordered TraceStep(name, expression, value) entries: the requested
        key first, then each reference it follows, depth-first.

    Raises:
        UnresolvedReferenceError: If the key does not exist.
    """
    settings = settings or CompileSettings()
    document = effective_document(source)
    env = Environment.from_document(document)
    expr, owner = _trace_target(document, env, key_path)
    return Resolver(env, workers=settings.workers).trace(key_path, expr, owner)
