"""Tests for static analysis of merged themes."""

from __future__ import annotations

from typing import Any

from sassy.core.ir import EffectiveDocument, FindingKind, Severity, TokenColorRule
from sassy.core.lint import (
    LintSettings,
    ScopeTrie,
    find_dead_rules,
    find_duplicate_scope_sets,
    find_redundant_scopes,
    is_ancestor,
    lint_document,
    lint_rules,
)
from sassy.core.merger import merge_chain
from sassy.core.source import parse_document


def _rules(*scopes: str | list[str]) -> list[TokenColorRule]:
    return [TokenColorRule(scopes=(s,) if isinstance(s, str) else tuple(s)) for s in scopes]


def _effective(**data: Any) -> EffectiveDocument:
    return merge_chain([parse_document(data, origin="theme.yaml")])


def _kinds(findings) -> list[FindingKind]:
    return [f.kind for f in findings]


class TestScopeHierarchy:
    def test_is_ancestor(self) -> None:
        assert is_ancestor("keyword", "keyword")
        assert is_ancestor("keyword", "keyword.control")
        assert not is_ancestor("keyword", "keywords")
        assert not is_ancestor("keyword.control", "keyword")

    def test_trie_finds_shortest_ancestor(self) -> None:
        trie = ScopeTrie()
        trie.insert("keyword.control", 0)
        trie.insert("keyword", 1)
        assert trie.find_ancestor("keyword.control.flow") == (1, "keyword")
        assert trie.find_ancestor("storage") is None

    def test_trie_keeps_first_owner(self) -> None:
        trie = ScopeTrie()
        trie.insert("keyword", 0)
        trie.insert("keyword", 3)
        assert trie.find_ancestor("keyword") == (0, "keyword")


class TestDeadRules:
    def test_child_after_parent(self) -> None:
        findings = find_dead_rules(_rules("keyword", "keyword.control"))
        assert len(findings) == 1
        finding = findings[0]
        assert finding.kind == FindingKind.DEAD_RULE
        assert finding.rule_index == 1
        assert finding.related_index == 0
        assert finding.scope == "keyword.control"
        assert finding.related_scope == "keyword"
        assert finding.severity == Severity.WARNING

    def test_parent_after_child_is_fine(self) -> None:
        assert find_dead_rules(_rules("keyword.control", "keyword")) == []

    def test_sibling_prefix_is_not_an_ancestor(self) -> None:
        assert find_dead_rules(_rules("keyword", "keywords.other")) == []

    def test_one_finding_per_rule(self) -> None:
        findings = find_dead_rules(_rules("a", "b", ["a.x", "b.y"]))
        assert len(findings) == 1
        assert findings[0].scope == "a.x"

    def test_exact_duplicate_is_shadowed(self) -> None:
        findings = find_dead_rules(_rules("string", "comment", "string"))
        assert [(f.rule_index, f.related_index) for f in findings] == [(2, 0)]

    def test_multi_scope_rule_shadows(self) -> None:
        findings = find_dead_rules(_rules(["comment", "string"], "string.quoted"))
        assert findings[0].related_index == 0

    def test_many_rules(self) -> None:
        rules = _rules(*[f"scope{i}.child" for i in range(5000)], "scope42.child.deep")
        findings = find_dead_rules(rules)
        assert [f.rule_index for f in findings] == [5000]
        assert findings[0].related_index == 42


class TestDuplicatesAndRedundancy:
    def test_duplicate_scope_set(self) -> None:
        findings = find_duplicate_scope_sets(_rules(["a", "b"], "c", ["b", "a"]))
        assert [(f.rule_index, f.related_index) for f in findings] == [(2, 0)]

    def test_redundant_scope(self) -> None:
        findings = find_redundant_scopes(_rules(["keyword", "keyword.control"]))
        assert len(findings) == 1
        assert findings[0].scope == "keyword.control"
        assert findings[0].related_scope == "keyword"
        assert findings[0].severity == Severity.INFO

    def test_repeated_scope_reported_once(self) -> None:
        findings = find_redundant_scopes(_rules(["a", "a"]))
        assert len(findings) == 1

    def test_lint_rules_combines_checks(self) -> None:
        findings = lint_rules(_rules("a", "a"))
        assert _kinds(findings) == [FindingKind.DEAD_RULE, FindingKind.DUPLICATE_SCOPE_SET]


class TestDocumentChecks:
    def test_clean(self) -> None:
        doc = _effective(
            vars={"fg": "#fff"},
            theme={
                "colors": {"editor.foreground": "$fg"},
                "tokenColors": [{"scope": "comment"}],
                "semanticTokenColors": {"variable.readonly:python": "#000"},
            },
        )
        assert lint_document(doc) == []

    def test_malformed_selector(self) -> None:
        doc = _effective(theme={"semanticTokenColors": {"variable..readonly": "#000"}})
        findings = lint_document(doc)
        assert _kinds(findings) == [FindingKind.MALFORMED_SELECTOR]
        assert findings[0].selector == "variable..readonly"
        assert findings[0].is_error

    def test_wildcard_selector(self) -> None:
        style = {"fontStyle": "strikethrough"}
        doc = _effective(theme={"semanticTokenColors": {"*.deprecated": style}})
        assert lint_document(doc) == []

    def test_undefined_variable(self) -> None:
        doc = _effective(theme={"colors": {"editor.foreground": "$nope"}})
        findings = lint_document(doc)
        assert _kinds(findings) == [FindingKind.UNDEFINED_VARIABLE]
        assert findings[0].variable == "nope"
        assert findings[0].origin == "theme.yaml"

    def test_unused_variable(self) -> None:
        doc = _effective(vars={"used": "#fff", "unused": "#000"}, palette={"ink": "$used"})
        findings = lint_document(doc)
        assert [(f.kind, f.variable) for f in findings] == [
            (FindingKind.UNUSED_VARIABLE, "vars.unused"),
            (FindingKind.UNUSED_VARIABLE, "palette.ink"),
        ]

    def test_self_reference_does_not_count_as_use(self) -> None:
        doc = _effective(vars={"loop": "fade($loop, 0.5)"})
        assert _kinds(lint_document(doc)) == [FindingKind.UNUSED_VARIABLE]

    def test_color_key_uses_same_named_variable(self) -> None:
        doc = _effective(
            vars={"editor.foreground": "#fff"},
            theme={"colors": {"editor.foreground": "$editor.foreground"}},
        )
        assert lint_document(doc) == []

    def test_disabled_checks(self) -> None:
        doc = _effective(
            vars={"unused": "#000"},
            theme={"tokenColors": [{"scope": "a"}, {"scope": "a.b"}]},
        )
        settings = LintSettings(disabled={FindingKind.UNUSED_VARIABLE, FindingKind.DEAD_RULE})
        assert lint_document(doc, settings) == []
        assert settings.enabled(FindingKind.MALFORMED_SELECTOR)

    def test_lint_uses_merged_rules(self, document_factory) -> None:
        base = document_factory("base.yaml", tokenColors=[{"scope": "keyword"}])
        override = document_factory("override.yaml", tokenColors=[{"scope": "keyword.control"}])
        findings = lint_document(merge_chain([base, override]))
        assert _kinds(findings) == [FindingKind.DEAD_RULE]
        assert findings[0].origin == "override.yaml"
