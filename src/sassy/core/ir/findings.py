"""
Lint finding types for Sassy IR.

Findings are data returned alongside a compiled artifact; they never
abort compilation.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Severity(StrEnum):
    """Finding severity, mapped to exit status by the caller."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FindingKind(StrEnum):
    """Checks performed by the static analyzer."""

    DEAD_RULE = "dead-rule"
    DUPLICATE_SCOPE_SET = "duplicate-scope-set"
    REDUNDANT_SCOPE = "redundant-scope"
    MALFORMED_SELECTOR = "malformed-selector"
    UNDEFINED_VARIABLE = "undefined-variable"
    UNUSED_VARIABLE = "unused-variable"


class LintFinding(BaseModel):
    """
    One static-analysis finding.

    Rule indices are 0-based positions in the effective tokenColors list.
    For dead rules, ``rule_index`` is the unreachable rule and
    ``related_index`` the earlier rule that shadows it.
    """

    kind: FindingKind
    severity: Severity
    message: str
    rule_index: int | None = Field(default=None)
    related_index: int | None = Field(default=None)
    scope: str | None = Field(default=None, description="Offending scope")
    related_scope: str | None = Field(default=None, description="Shadowing scope")
    selector: str | None = Field(default=None, description="Offending semantic selector")
    variable: str | None = Field(default=None, description="Offending variable name")
    origin: str | None = Field(default=None, description="Document that declared the subject")

    model_config = ConfigDict(frozen=True)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def __str__(self) -> str:
        return f"{self.severity}: [{self.kind}] {self.message}"
