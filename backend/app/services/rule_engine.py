"""
Configurable rule engine.

Rules are plain records (name, message, regex pattern, severity, enabled)
owned by an external store. A snapshot is compiled once per batch into an
immutable `CompiledRuleSet`; broken patterns are kept as values next to the
compiled ones and reported as Critical findings on every analyzed document,
so one bad rule never hides the others.

Scanning is line by line over code cells. Comment lines and import lines are
never tested against any rule.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Pattern, Tuple

from ..models.notebook import Notebook
from ..models.validation import Finding, Severity, ValidationRule

logger = logging.getLogger(__name__)


RULE_ERROR = "Error de Regla"

_SKIPPED_PREFIXES = ("#", "import", "from")


class RuleCompilationError(ValueError):
    """Raised when a rule's pattern is not a valid regular expression."""

    def __init__(self, rule: ValidationRule, reason: str):
        self.rule = rule
        self.reason = reason
        super().__init__(f"Rule '{rule.name}' (ID: {rule.id}) has an invalid pattern: {reason}")


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class CompiledRule:
    """A rule paired with its compiled matcher."""

    rule: ValidationRule
    regex: Pattern[str]

    @classmethod
    def from_rule(cls, rule: ValidationRule) -> "CompiledRule":
        try:
            return cls(rule=rule, regex=_compile(rule.pattern))
        except (re.error, OverflowError) as e:
            raise RuleCompilationError(rule, str(e)) from e

    def matches(self, line: str) -> bool:
        return self.regex.search(line) is not None


@dataclass(frozen=True)
class CompiledRuleSet:
    """Result of compiling a rule snapshot: usable rules plus the failures."""

    rules: Tuple[CompiledRule, ...] = ()
    failures: Tuple[RuleCompilationError, ...] = ()

    def failure_findings(self, document_name: str) -> List[Finding]:
        """One Critical finding per rule that failed to compile."""
        return [
            Finding(
                document_name=document_name,
                finding_type=RULE_ERROR,
                details=(
                    f"La regla '{failure.rule.name}' (ID: {failure.rule.id}) "
                    f"tiene un patrón Regex inválido: {failure.reason}"
                ),
                severity=Severity.CRITICAL,
            )
            for failure in self.failures
        ]


def compile_rules(rules: Iterable[ValidationRule]) -> CompiledRuleSet:
    """
    Compile every enabled rule of a snapshot, independently.

    Args:
        rules: Rule snapshot (disabled rules are ignored)

    Returns:
        CompiledRuleSet preserving snapshot order for both rules and failures
    """
    compiled: List[CompiledRule] = []
    failures: List[RuleCompilationError] = []

    for rule in rules:
        if not rule.enabled:
            continue
        try:
            compiled.append(CompiledRule.from_rule(rule))
        except RuleCompilationError as e:
            logger.warning(f"Skipping rule with invalid pattern: {e}")
            failures.append(e)

    return CompiledRuleSet(rules=tuple(compiled), failures=tuple(failures))


def is_skipped_line(line: str) -> bool:
    """Comment and import lines are never evaluated (prefix test, case-insensitive)."""
    return line.strip().lower().startswith(_SKIPPED_PREFIXES)


def scan_rules(notebook: Notebook, rule_set: CompiledRuleSet, document_name: str) -> List[Finding]:
    """
    Apply compiled rules to every code line of the notebook.

    Emits one finding per (rule, line) match, in cell order, then line order,
    then rule order. Failure findings from compilation are appended once at
    the end.
    """
    findings: List[Finding] = []

    for cell_index, cell in notebook.code_cells():
        cell_source = cell.text
        for line_index, line in enumerate(cell.source):
            if is_skipped_line(line):
                continue
            for compiled in rule_set.rules:
                if not compiled.matches(line):
                    continue
                findings.append(Finding(
                    document_name=document_name,
                    finding_type=compiled.rule.name,
                    details=compiled.rule.message,
                    cell_number=cell_index + 1,
                    line_number=line_index + 1,
                    content=line.strip(),
                    cell_source_code=cell_source,
                    severity=compiled.rule.severity,
                ))

    findings.extend(rule_set.failure_findings(document_name))
    return findings
