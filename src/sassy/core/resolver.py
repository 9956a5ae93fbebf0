"""
Expression resolution.

Evaluates an EffectiveDocument's expression graph into a ResolvedDocument.

Named values (vars, palette entries, colors keys) form a node table keyed
by NodeKey. Before anything is evaluated the dependency graph is checked
for unknown names and cycles, then nodes are evaluated level by level
(dependencies first), optionally on a thread pool. Each node is evaluated
at most once: the memo holds one Future per node and concurrent requesters
wait on it.

Reference lookup order: the local layer (the namespace the referring value
lives in), then vars, then palette. ``$palette.x`` and ``$$x`` only look in
the palette. Values in tokenColors and semanticTokenColors have no named
local layer and fall back to colors keys last. A value never finds itself
in its own layer: ``colors.a: $a`` looks past ``colors.a`` to ``vars.a``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from typing import NamedTuple

from .color_functions import FUNCTIONS, ArgKind, ColorFunction, named_color, parse_hex
from .errors import (
    ColorTypeError,
    ErrorContext,
    ParseError,
    SassyError,
    attach_import_chain,
    make_cycle_error,
    make_unresolved_error,
)
from .ir import (
    ColorLiteral,
    ColorValue,
    EffectiveDocument,
    Expr,
    FuncCall,
    NameLiteral,
    NumberLiteral,
    Reference,
    RefNamespace,
    ResolvedDocument,
    ResolvedSemanticStyle,
    ResolvedTokenColorRule,
    ResolvedTokenSettings,
    SemanticStyle,
    iter_references,
)

logger = logging.getLogger(__name__)


class Namespace(StrEnum):
    """Namespaces of the node table."""

    VARS = "vars"
    PALETTE = "palette"
    COLORS = "colors"


@dataclass(frozen=True)
class NodeKey:
    """Identity of one named value."""

    namespace: Namespace
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}.{self.name}"


_LOOKUP_ORDER: dict[Namespace | None, tuple[Namespace, ...]] = {
    Namespace.VARS: (Namespace.VARS, Namespace.PALETTE),
    Namespace.PALETTE: (Namespace.PALETTE, Namespace.VARS),
    Namespace.COLORS: (Namespace.COLORS, Namespace.VARS, Namespace.PALETTE),
    None: (Namespace.VARS, Namespace.PALETTE, Namespace.COLORS),
}


@dataclass(frozen=True)
class Environment:
    """
    Name table for one resolution.

    Passed explicitly to the Resolver so independent compiles never share
    state.
    """

    tables: Mapping[Namespace, Mapping[str, Expr]]
    document: str = "<memory>"
    definitions: Mapping[str, str] = field(default_factory=dict)
    import_chains: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: EffectiveDocument) -> Environment:
        colors = {entry.key: entry.value for entry in document.colors if entry.value is not None}
        definitions = dict(document.definitions)
        definitions.update(
            (f"colors.{entry.key}", entry.origin)
            for entry in document.colors
            if entry.value is not None
        )
        definitions.update(
            (f"tokenColors[{i}].settings.foreground", rule.origin)
            for i, rule in enumerate(document.token_colors)
        )
        for entry in document.semantic_token_colors:
            site = f"semanticTokenColors.{entry.selector}"
            definitions[site] = definitions[f"{site}.foreground"] = entry.origin
        return cls(
            tables={
                Namespace.VARS: document.variables,
                Namespace.PALETTE: document.palette,
                Namespace.COLORS: colors,
            },
            document=document.origin,
            definitions=definitions,
            import_chains=document.import_chains,
        )

    def keys(self) -> Iterable[NodeKey]:
        for namespace, table in self.tables.items():
            for name in table:
                yield NodeKey(namespace, name)

    def expression(self, key: NodeKey) -> Expr:
        return self.tables[key.namespace][key.name]

    def lookup(self, ref: Reference, owner: NodeKey | None = None) -> NodeKey | None:
        """Find the node a reference points at, or None.

        ``owner`` is the node whose expression holds the reference. Its own
        entry is skipped, so ``colors.a: $a`` reaches ``vars.a``. A name that
        exists only as the owner itself is a self-reference and returns it.
        """
        if ref.namespace == RefNamespace.PALETTE:
            order: tuple[Namespace, ...] = (Namespace.PALETTE,)
        else:
            order = _LOOKUP_ORDER[None if owner is None else owner.namespace]
        for namespace in order:
            key = NodeKey(namespace, ref.name)
            if key != owner and ref.name in self.tables.get(namespace, {}):
                return key
        if owner is not None and owner.name == ref.name and owner.namespace in order:
            return owner
        return None

    def origin_of(self, site: str) -> str:
        return self.definitions.get(site, self.document)

    def annotate(self, error: SassyError) -> SassyError:
        """Add the import chain of the document an error points at."""
        document = error.context.document if error.context else None
        return attach_import_chain(error, self.import_chains.get(document or "", ()))


class TraceStep(NamedTuple):
    """One step of a resolution trail: (name, expression, resolved value)."""

    name: str
    expression: str
    value: ColorValue | None


Value = ColorValue | NumberLiteral


def _describe(value: Value) -> str:
    if isinstance(value, ColorValue):
        return f"color {value.hex}"
    return f"number {value}"


class Resolver:
    """Resolves expressions against one Environment."""

    def __init__(
        self,
        env: Environment,
        *,
        workers: int = 1,
        functions: Mapping[str, ColorFunction] = FUNCTIONS,
    ) -> None:
        self.env = env
        self.workers = max(1, workers)
        self.functions = functions
        self._memo: dict[NodeKey, Future[ColorValue]] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    # -- Graph --

    def _dependencies(self, key: NodeKey) -> tuple[NodeKey, ...]:
        deps: list[NodeKey] = []
        for ref in iter_references(self.env.expression(key)):
            dep = self.env.lookup(ref, key)
            if dep is None:
                site = str(key)
                raise make_unresolved_error(ref.qualified, site, self.env.origin_of(site))
            if dep not in deps:
                deps.append(dep)
        return tuple(deps)

    def plan(self, roots: Iterable[NodeKey]) -> list[list[NodeKey]]:
        """Order the nodes reachable from ``roots`` into dependency levels.

        Level 0 has no dependencies; every node's dependencies sit in
        earlier levels. Uses an explicit stack, so arbitrarily long
        reference chains are safe.

        Raises:
            UnresolvedReferenceError: If a reference names nothing.
            CyclicReferenceError: If references form a cycle.
        """
        graph: dict[NodeKey, tuple[NodeKey, ...]] = {}
        depth: dict[NodeKey, int] = {}
        on_path: set[NodeKey] = set()

        for root in roots:
            if root in depth:
                continue
            graph.setdefault(root, self._dependencies(root))
            path = [root]
            on_path.add(root)
            stack = [iter(graph[root])]
            while stack:
                node = path[-1]
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    path.pop()
                    on_path.discard(node)
                    depth[node] = 1 + max((depth[d] for d in graph[node]), default=-1)
                    continue
                if child in on_path:
                    cycle = path[path.index(child) :] + [child]
                    raise make_cycle_error(
                        tuple(str(k) for k in cycle), self.env.origin_of(str(child))
                    )
                if child in depth:
                    continue
                graph.setdefault(child, self._dependencies(child))
                path.append(child)
                on_path.add(child)
                stack.append(iter(graph[child]))

        levels: list[list[NodeKey]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
        for node, level in depth.items():
            levels[level].append(node)
        return levels

    # -- Evaluation --

    def _resolving(self) -> list[NodeKey]:
        chain = getattr(self._local, "chain", None)
        if chain is None:
            chain = self._local.chain = []
        return chain

    def resolve_node(self, key: NodeKey) -> ColorValue:
        """Resolve one named value, evaluating it at most once."""
        chain = self._resolving()
        if key in chain:
            cycle = chain[chain.index(key) :] + [key]
            raise make_cycle_error(tuple(str(k) for k in cycle), self.env.origin_of(str(key)))

        with self._lock:
            future = self._memo.get(key)
            first = future is None
            if first:
                future = self._memo[key] = Future()
        assert future is not None
        if not first:
            return future.result()

        chain.append(key)
        try:
            value = self.resolve_expression(self.env.expression(key), site=str(key), owner=key)
        except BaseException as e:
            future.set_exception(e)
            raise
        finally:
            chain.pop()
        future.set_result(value)
        return value

    def resolve_nodes(self, roots: Iterable[NodeKey]) -> dict[NodeKey, ColorValue]:
        """Resolve ``roots`` and everything they depend on."""
        levels = self.plan(roots)
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                for level in levels:
                    list(executor.map(self.resolve_node, level))
        else:
            for level in levels:
                for key in level:
                    self.resolve_node(key)
        return {key: self._memo[key].result() for level in levels for key in level}

    def resolve_expression(
        self, expr: Expr, *, site: str, owner: NodeKey | None = None
    ) -> ColorValue:
        """Resolve an expression that must produce a color.

        ``owner`` is the named value the expression belongs to, if any.
        """
        value = self._evaluate(expr, site, owner)
        if not isinstance(value, ColorValue):
            raise ColorTypeError(
                f"{site} must be a color, got {_describe(value)}",
                ErrorContext(document=self.env.origin_of(site), key=site),
                expected="color",
                actual="number",
            )
        return value

    def _evaluate(self, expr: Expr, site: str, owner: NodeKey | None) -> Value:
        if isinstance(expr, ColorLiteral):
            try:
                return parse_hex(expr.text)
            except ValueError as e:
                raise ParseError(str(e), ErrorContext(self.env.origin_of(site), site)) from e

        if isinstance(expr, NameLiteral):
            try:
                return named_color(expr.name)
            except ValueError as e:
                raise ColorTypeError(
                    f"'{expr.name}' is not a known color name",
                    ErrorContext(document=self.env.origin_of(site), key=site),
                    expected="color",
                    actual=f"name '{expr.name}'",
                ) from e

        if isinstance(expr, NumberLiteral):
            return expr

        if isinstance(expr, Reference):
            key = self.env.lookup(expr, owner)
            if key is None:
                raise make_unresolved_error(
                    expr.qualified,
                    site,
                    self.env.origin_of(site),
                    tuple(str(k) for k in self._resolving()),
                )
            return self.resolve_node(key)

        if isinstance(expr, FuncCall):
            return self._call(expr, site, owner)

        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def _call(self, call: FuncCall, site: str, owner: NodeKey | None) -> ColorValue:
        context = ErrorContext(document=self.env.origin_of(site), key=site)
        function = self.functions.get(call.name)
        if function is None:
            raise ParseError(f"Unknown color function '{call.name}()'", context)

        if not function.min_args <= len(call.args) <= len(function.params):
            raise ColorTypeError(
                f"{function.signature} takes {len(function.params)} argument(s), "
                f"got {len(call.args)}",
                context,
                expected=function.signature,
                actual=f"{len(call.args)} argument(s)",
            )

        # Innermost first: every argument is resolved before the call.
        args: list[ColorValue | float] = []
        for position, (arg, kind) in enumerate(zip(call.args, function.params), start=1):
            value = self._evaluate(arg, site, owner)
            if (kind == ArgKind.COLOR) != isinstance(value, ColorValue):
                raise ColorTypeError(
                    f"{call.name}() argument {position} must be a {kind}, "
                    f"got {_describe(value)}",
                    context,
                    expected=str(kind),
                    actual=_describe(value),
                )
            if isinstance(value, NumberLiteral):
                args.append(value.fraction if kind == ArgKind.FRACTION else value.value)
            else:
                args.append(value)
        return function.impl(*args)

    # -- Tracing --

    def trace(self, name: str, expr: Expr | None, owner: NodeKey | None) -> list[TraceStep]:
        """Resolution trail for one value, following references depth-first."""
        refs = [] if expr is None else iter_references(expr)
        roots = [k for k in (self.env.lookup(r, owner) for r in refs) if k is not None]
        try:
            self.resolve_nodes(roots)
            value = None if expr is None else self.resolve_expression(expr, site=name, owner=owner)
        except SassyError as e:
            self.env.annotate(e)
            raise
        steps = [TraceStep(name, "" if expr is None else str(expr), value)]

        seen: set[NodeKey] = set()
        stack = list(reversed(roots))
        while stack:
            key = stack.pop()
            if key in seen:
                continue
            seen.add(key)
            node_expr = self.env.expression(key)
            steps.append(TraceStep(str(key), str(node_expr), self._memo[key].result()))
            children = [self.env.lookup(r, key) for r in iter_references(node_expr)]
            stack.extend(reversed([c for c in children if c is not None]))
        return steps


# =============================================================================
# Document resolution
# =============================================================================


def _resolve_slot(resolver: Resolver, expr: Expr | None, site: str) -> ColorValue | None:
    if expr is None:
        return None
    return resolver.resolve_expression(expr, site=site)


def resolve_document(document: EffectiveDocument, *, workers: int = 1) -> ResolvedDocument:
    """Resolve every expression in an EffectiveDocument.

    Args:
        document: Merged document
        workers: Threads used to evaluate independent values

    Returns:
        A new ResolvedDocument; ``document`` is not modified.

    Raises:
        UnresolvedReferenceError, CyclicReferenceError, ColorTypeError,
        ParseError: On the first failing value (fail-fast).
    """
    env = Environment.from_document(document)
    resolver = Resolver(env, workers=workers)
    try:
        return _resolve_layers(document, resolver)
    except SassyError as e:
        env.annotate(e)
        raise


def _resolve_layers(document: EffectiveDocument, resolver: Resolver) -> ResolvedDocument:
    values = resolver.resolve_nodes(resolver.env.keys())
    logger.debug(f"Resolved {len(values)} named value(s) for {document.origin}")

    token_colors = []
    for i, rule in enumerate(document.token_colors):
        site = f"tokenColors[{i}].settings.foreground"
        token_colors.append(
            ResolvedTokenColorRule(
                name=rule.name,
                scopes=rule.scopes,
                written_scope=rule.written_scope,
                settings=ResolvedTokenSettings(
                    foreground=_resolve_slot(resolver, rule.settings.foreground, site),
                    font_style=rule.settings.font_style,
                ),
            )
        )

    semantic: list[tuple[str, ColorValue | ResolvedSemanticStyle | None]] = []
    for entry in document.semantic_token_colors:
        site = f"semanticTokenColors.{entry.selector}"
        resolved: ColorValue | ResolvedSemanticStyle | None
        if isinstance(entry.value, SemanticStyle):
            resolved = ResolvedSemanticStyle(
                foreground=_resolve_slot(resolver, entry.value.foreground, f"{site}.foreground"),
                font_style=entry.value.font_style,
            )
        else:
            resolved = _resolve_slot(resolver, entry.value, site)
        semantic.append((entry.selector, resolved))

    return ResolvedDocument(
        name=document.name,
        type=document.type,
        semantic_highlighting=document.semantic_highlighting,
        schema_url=document.schema_url,
        custom=document.custom,
        variables={k.name: v for k, v in values.items() if k.namespace == Namespace.VARS},
        palette={k.name: v for k, v in values.items() if k.namespace == Namespace.PALETTE},
        colors=tuple(
            (
                entry.key,
                None if entry.value is None else values[NodeKey(Namespace.COLORS, entry.key)],
            )
            for entry in document.colors
        ),
        token_colors=tuple(token_colors),
        semantic_token_colors=tuple(semantic),
        sources=document.sources,
    )
