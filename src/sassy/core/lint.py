"""
Static analysis of merged themes.

Checks the ordered tokenColors rules for precedence defects, semantic
selectors for syntax errors, and variables for undefined or unused
names. Findings are returned as data and never abort compilation.

Scope hierarchy: selector A is an ancestor of B when B == A or B starts
with A followed by a dot. Dead rules are found with a segment trie filled
rule by rule, querying each rule before inserting its own scopes, so cost
grows with total scope length rather than with pairs of rules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .flatten import is_group_of
from .ir import (
    EffectiveDocument,
    Expr,
    FindingKind,
    LintFinding,
    SemanticSelector,
    SemanticStyle,
    Severity,
    TokenColorRule,
    iter_references,
)
from .resolver import Environment, Namespace, NodeKey

logger = logging.getLogger(__name__)


# =============================================================================
# Scope trie
# =============================================================================


class _TrieNode:
    __slots__ = ("children", "owner")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        self.owner: int | None = None


class ScopeTrie:
    """Prefix tree over dot segments of scope selectors."""

    def __init__(self) -> None:
        self._root = _TrieNode()

    def insert(self, scope: str, owner: int) -> None:
        """Record ``scope`` for rule ``owner``; the first owner of a scope is kept."""
        node = self._root
        for segment in scope.split("."):
            node = node.children.setdefault(segment, _TrieNode())
        if node.owner is None:
            node.owner = owner

    def find_ancestor(self, scope: str) -> tuple[int, str] | None:
        """Return (owner, ancestor scope) for the shortest recorded ancestor-or-equal."""
        node = self._root
        segments = scope.split(".")
        for depth, segment in enumerate(segments, start=1):
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
            if node.owner is not None:
                return node.owner, ".".join(segments[:depth])
        return None


def is_ancestor(ancestor: str, scope: str) -> bool:
    return scope == ancestor or is_group_of(ancestor, scope)


# =============================================================================
# Settings
# =============================================================================


@dataclass
class LintSettings:
    """Which checks to run."""

    disabled: set[FindingKind] = field(default_factory=set)

    def enabled(self, kind: FindingKind) -> bool:
        return kind not in self.disabled


# =============================================================================
# Rule checks
# =============================================================================


def _position(i: int, rule: TokenColorRule) -> str:
    return f"#{i + 1} {rule.label}"


def find_dead_rules(rules: Sequence[TokenColorRule]) -> list[LintFinding]:
    """Rules that can never match because an earlier rule covers one of their scopes."""
    findings = []
    trie = ScopeTrie()
    for i, rule in enumerate(rules):
        for scope in rule.scopes:
            hit = trie.find_ancestor(scope)
            if hit is None:
                continue
            j, ancestor = hit
            findings.append(
                LintFinding(
                    kind=FindingKind.DEAD_RULE,
                    severity=Severity.WARNING,
                    message=(
                        f"Rule {_position(i, rule)} is unreachable for '{scope}': "
                        f"rule {_position(j, rules[j])} matches '{ancestor}' first"
                    ),
                    rule_index=i,
                    related_index=j,
                    scope=scope,
                    related_scope=ancestor,
                    origin=rule.origin,
                )
            )
            break
        for scope in rule.scopes:
            trie.insert(scope, i)
    return findings


def find_duplicate_scope_sets(rules: Sequence[TokenColorRule]) -> list[LintFinding]:
    findings = []
    first_seen: dict[frozenset[str], int] = {}
    for i, rule in enumerate(rules):
        if not rule.scopes:
            continue
        j = first_seen.setdefault(rule.scope_set, i)
        if j != i:
            findings.append(
                LintFinding(
                    kind=FindingKind.DUPLICATE_SCOPE_SET,
                    severity=Severity.WARNING,
                    message=(
                        f"Rule {_position(i, rule)} declares the same scopes as "
                        f"rule {_position(j, rules[j])}"
                    ),
                    rule_index=i,
                    related_index=j,
                    origin=rule.origin,
                )
            )
    return findings


def find_redundant_scopes(rules: Sequence[TokenColorRule]) -> list[LintFinding]:
    """Scopes already covered by an ancestor in the same rule."""
    findings = []
    for i, rule in enumerate(rules):
        for k, scope in enumerate(rule.scopes):
            for m, other in enumerate(rule.scopes):
                if k == m or not is_ancestor(other, scope):
                    continue
                # Equal pairs are reported once, on the later copy.
                if other == scope and m > k:
                    continue
                findings.append(
                    LintFinding(
                        kind=FindingKind.REDUNDANT_SCOPE,
                        severity=Severity.INFO,
                        message=f"Rule {_position(i, rule)}: '{scope}' is already covered "
                        f"by '{other}'",
                        rule_index=i,
                        scope=scope,
                        related_scope=other,
                        origin=rule.origin,
                    )
                )
                break
    return findings


def find_malformed_selectors(document: EffectiveDocument) -> list[LintFinding]:
    findings = []
    for entry in document.semantic_token_colors:
        try:
            SemanticSelector.parse(entry.selector)
        except ValueError as e:
            findings.append(
                LintFinding(
                    kind=FindingKind.MALFORMED_SELECTOR,
                    severity=Severity.ERROR,
                    message=str(e),
                    selector=entry.selector,
                    origin=entry.origin,
                )
            )
    return findings


# =============================================================================
# Variable checks
# =============================================================================


def _expressions(document: EffectiveDocument) -> Iterable[tuple[str, Expr, NodeKey | None, str]]:
    """Every expression with its site, owning node and origin."""
    for name, expr in document.variables.items():
        key = NodeKey(Namespace.VARS, name)
        yield str(key), expr, key, document.definitions.get(str(key), "")
    for name, expr in document.palette.items():
        key = NodeKey(Namespace.PALETTE, name)
        yield str(key), expr, key, document.definitions.get(str(key), "")
    for entry in document.colors:
        if entry.value is not None:
            key = NodeKey(Namespace.COLORS, entry.key)
            yield str(key), entry.value, key, entry.origin
    for i, rule in enumerate(document.token_colors):
        if rule.settings.foreground is not None:
            site = f"tokenColors[{i}].settings.foreground"
            yield site, rule.settings.foreground, None, rule.origin
    for entry in document.semantic_token_colors:
        value = entry.value
        if isinstance(value, SemanticStyle):
            value = value.foreground
        if value is not None:
            yield f"semanticTokenColors.{entry.selector}", value, None, entry.origin


def check_variables(document: EffectiveDocument, settings: LintSettings) -> list[LintFinding]:
    env = Environment.from_document(document)
    findings = []
    used: set[str] = set()

    for site, expr, owner, origin in _expressions(document):
        for ref in iter_references(expr):
            key = env.lookup(ref, owner)
            if key is None:
                if settings.enabled(FindingKind.UNDEFINED_VARIABLE):
                    findings.append(
                        LintFinding(
                            kind=FindingKind.UNDEFINED_VARIABLE,
                            severity=Severity.ERROR,
                            message=f"{site} references undefined '{ref}'",
                            variable=ref.qualified,
                            origin=origin or None,
                        )
                    )
                continue
            if str(key) != site:
                used.add(str(key))

    if settings.enabled(FindingKind.UNUSED_VARIABLE):
        for namespace, table in (("vars", document.variables), ("palette", document.palette)):
            for name in table:
                qualified = f"{namespace}.{name}"
                if qualified not in used:
                    findings.append(
                        LintFinding(
                            kind=FindingKind.UNUSED_VARIABLE,
                            severity=Severity.INFO,
                            message=f"{qualified} is never referenced",
                            variable=qualified,
                            origin=document.definitions.get(qualified),
                        )
                    )
    return findings


# =============================================================================
# Entry point
# =============================================================================


def lint_rules(
    rules: Sequence[TokenColorRule], settings: LintSettings | None = None
) -> list[LintFinding]:
    """Precedence checks over an ordered tokenColors rule list."""
    settings = settings or LintSettings()
    findings: list[LintFinding] = []
    if settings.enabled(FindingKind.DEAD_RULE):
        findings.extend(find_dead_rules(rules))
    if settings.enabled(FindingKind.DUPLICATE_SCOPE_SET):
        findings.extend(find_duplicate_scope_sets(rules))
    if settings.enabled(FindingKind.REDUNDANT_SCOPE):
        findings.extend(find_redundant_scopes(rules))
    return findings


def lint_document(
    document: EffectiveDocument, settings: LintSettings | None = None
) -> list[LintFinding]:
    """Run every enabled check on a merged document.

    Returns:
        Findings ordered by check, then by position.
    """
    settings = settings or LintSettings()
    findings = lint_rules(document.token_colors, settings)
    if settings.enabled(FindingKind.MALFORMED_SELECTOR):
        findings.extend(find_malformed_selectors(document))
    findings.extend(check_variables(document, settings))

    errors = sum(1 for f in findings if f.severity == Severity.ERROR)
    warnings = sum(1 for f in findings if f.severity == Severity.WARNING)
    logger.debug(f"Lint {document.origin}: {errors} error(s), {warnings} warning(s)")
    return findings
