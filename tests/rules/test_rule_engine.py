"""
Tests for the configurable rule engine.

Covers compilation isolation (one broken pattern never hides the others),
the comment/import line skip, and finding order.
"""

from __future__ import annotations

import pytest

from backend.app.models.notebook import Cell, CellType, Notebook
from backend.app.models.validation import Severity, ValidationRule
from backend.app.services.rule_engine import (
    RULE_ERROR,
    CompiledRule,
    RuleCompilationError,
    compile_rules,
    is_skipped_line,
    scan_rules,
)


def rule(rule_id: str, pattern: str, severity: str = "Warning", enabled: bool = True) -> ValidationRule:
    return ValidationRule(
        id=rule_id,
        name=f"Regla {rule_id}",
        message=f"Mensaje {rule_id}",
        pattern=pattern,
        severity=severity,
        enabled=enabled,
    )


def code(*lines: str) -> Cell:
    return Cell(cell_type=CellType.CODE, source=lines)


def scan(notebook: Notebook, *rules: ValidationRule):
    return scan_rules(notebook, compile_rules(rules), "job.ipynb")


class TestCompilation:

    def test_invalid_pattern_raises_rule_compilation_error(self):
        with pytest.raises(RuleCompilationError) as exc_info:
            CompiledRule.from_rule(rule("7", "(unclosed"))
        assert exc_info.value.rule.id == "7"

    def test_disabled_rules_are_not_compiled(self):
        rule_set = compile_rules([rule("1", "x"), rule("2", "(", enabled=False)])
        assert [c.rule.id for c in rule_set.rules] == ["1"]
        assert rule_set.failures == ()

    @pytest.mark.parametrize("bad_position", [0, 1, 2])
    def test_one_bad_rule_never_blocks_the_others(self, bad_position):
        rules = [rule("a", "spark"), rule("b", "table"), rule("c", "sql")]
        rules.insert(bad_position, rule("bad", "[a-"))

        nb = Notebook(cells=(code('spark.sql("select * from table")'),))
        findings = scan(nb, *rules)

        rule_findings = [f for f in findings if f.finding_type != RULE_ERROR]
        error_findings = [f for f in findings if f.finding_type == RULE_ERROR]

        assert [f.finding_type for f in rule_findings] == ["Regla a", "Regla b", "Regla c"]
        assert len(error_findings) == 1
        assert error_findings[0].severity == Severity.CRITICAL
        assert "'Regla bad'" in error_findings[0].details
        assert "ID: bad" in error_findings[0].details

    def test_rule_error_is_reported_once_per_document(self):
        nb = Notebook(cells=(code("a = 1", "b = 2"), code("c = 3")))

        findings = scan(nb, rule("bad", "("))

        assert len(findings) == 1
        assert findings[0].finding_type == RULE_ERROR
        assert findings[0].cell_number is None

    def test_rule_error_reported_even_without_code_cells(self):
        findings = scan(Notebook(), rule("bad", "("))
        assert [f.finding_type for f in findings] == [RULE_ERROR]


class TestLineSkip:

    @pytest.mark.parametrize(
        "line",
        ["# TODO: fix this", "   #TODO", "import todo", "from todo import x", "IMPORT TODO", "From todo import y"],
    )
    def test_comment_and_import_lines_never_match(self, line):
        assert is_skipped_line(line)
        assert scan(Notebook(cells=(code(line),)), rule("1", "todo")) == []

    def test_trailing_comment_is_scanned(self):
        nb = Notebook(cells=(code("x = 1  # TODO fix"),))

        findings = scan(nb, rule("1", "TODO", severity="Warning"))

        assert len(findings) == 1
        finding = findings[0]
        assert finding.severity == Severity.WARNING
        assert finding.content == "x = 1  # TODO fix"
        assert finding.finding_type == "Regla 1"
        assert finding.details == "Mensaje 1"


class TestScan:

    def test_matching_is_case_insensitive(self):
        nb = Notebook(cells=(code("df.write.saveAsTable('x')"),))
        assert len(scan(nb, rule("1", "SAVEASTABLE"))) == 1

    def test_untrimmed_line_is_tested(self):
        nb = Notebook(cells=(code("if x:", "    drop_it()"),))

        findings = scan(nb, rule("1", r"^\s{4}drop"))

        assert len(findings) == 1
        assert findings[0].line_number == 2
        assert findings[0].content == "drop_it()"

    def test_multiple_rules_on_one_line(self):
        nb = Notebook(cells=(code('spark.sql("DROP TABLE prod_db.sales")'),))

        findings = scan(nb, rule("1", "drop table", severity="Critical"), rule("2", r"prod_\w+"))

        assert [(f.finding_type, f.severity) for f in findings] == [
            ("Regla 1", Severity.CRITICAL),
            ("Regla 2", Severity.WARNING),
        ]

    def test_findings_in_cell_then_line_then_rule_order(self):
        nb = Notebook(cells=(
            code("a b", "b"),
            Cell(cell_type=CellType.MARKDOWN, source=("a b",)),
            code("a"),
        ))

        findings = scan(nb, rule("A", "a"), rule("B", "b"))

        assert [(f.cell_number, f.line_number, f.finding_type) for f in findings] == [
            (1, 1, "Regla A"),
            (1, 1, "Regla B"),
            (1, 2, "Regla B"),
            (3, 1, "Regla A"),
        ]
        assert findings[0].cell_source_code == "a b\nb"

    def test_severity_strings_are_case_insensitive(self):
        assert rule("1", "x", severity="critical").severity == Severity.CRITICAL
        assert rule("1", "x", severity=" INFO ").severity == Severity.INFO

    def test_no_rules_no_findings(self):
        assert scan(Notebook(cells=(code("anything"),))) == []
