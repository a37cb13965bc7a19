"""
Tests for loading rule snapshots from YAML files.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from backend.app.config import DEFAULT_RULES_DIR
from backend.app.models.validation import Severity
from backend.app.services.rule_engine import compile_rules
from backend.app.services.validators import RuleStoreError, YAMLRuleLoader


def write_rules(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def test_loads_rules_in_file_then_entry_order(tmp_path):
    write_rules(tmp_path, "b.yaml", """
        version: "1.0"
        rules:
          - id: "3"
            name: "Tercera"
            message: "m3"
            pattern: 'c'
            severity: info
    """)
    write_rules(tmp_path, "a.yaml", """
        version: "1.0"
        rules:
          - id: 1
            name: "Primera"
            message: "m1"
            pattern: '\\bDROP\\s+TABLE\\b'
            severity: Critical
          - id: 2
            name: "Segunda"
            message: "m2"
            pattern: 'b'
            severity: Warning
            enabled: false
    """)

    loader = YAMLRuleLoader(str(tmp_path))
    rules = loader.get_rules()

    assert [r.id for r in rules] == ["1", "2", "3"]
    assert rules[0].pattern == r"\bDROP\s+TABLE\b"
    assert rules[0].severity == Severity.CRITICAL
    assert rules[2].severity == Severity.INFO
    assert rules[1].enabled is False
    assert [r.id for r in loader.get_enabled_rules()] == ["1", "3"]

    stats = loader.get_rule_stats()
    assert stats["total"] == 3
    assert stats["disabled"] == ["Segunda"]


def test_invalid_entries_and_files_are_skipped(tmp_path):
    write_rules(tmp_path, "broken.yaml", "rules: [unclosed\n")
    write_rules(tmp_path, "no_rules.yaml", "version: '1.0'\n")
    write_rules(tmp_path, "mixed.yaml", """
        rules:
          - "not a mapping"
          - id: "missing-pattern"
            name: "Sin patrón"
            message: "m"
          - id: "bad-severity"
            name: "Severidad"
            message: "m"
            pattern: "x"
            severity: "Blocker"
          - id: "ok"
            name: "Válida"
            message: "m"
            pattern: "x"
    """)

    loader = YAMLRuleLoader(str(tmp_path))

    assert [r.id for r in loader.get_rules()] == ["ok"]


def test_duplicate_ids_keep_the_first(tmp_path):
    write_rules(tmp_path, "a.yaml", """
        rules:
          - {id: "1", name: "Primera", message: "m", pattern: "a"}
          - {id: "1", name: "Repetida", message: "m", pattern: "b"}
    """)

    loader = YAMLRuleLoader(str(tmp_path))

    assert [r.name for r in loader.get_rules()] == ["Primera"]


def test_invalid_pattern_still_loads(tmp_path):
    # Pattern validity is the engine's concern, reported as a finding
    write_rules(tmp_path, "a.yaml", """
        rules:
          - {id: "1", name: "Rota", message: "m", pattern: "(unclosed"}
    """)

    loader = YAMLRuleLoader(str(tmp_path))
    rule_set = compile_rules(loader.get_rules())

    assert rule_set.rules == ()
    assert len(rule_set.failures) == 1


def test_missing_directory_yields_empty_snapshot(tmp_path):
    loader = YAMLRuleLoader(str(tmp_path / "nowhere"))
    assert loader.get_rules() == []


def test_file_instead_of_directory_is_an_error(tmp_path):
    path = write_rules(tmp_path, "a.yaml", "rules: []\n")
    with pytest.raises(RuleStoreError):
        YAMLRuleLoader(str(path))


def test_reload_picks_up_changes(tmp_path):
    write_rules(tmp_path, "a.yaml", """
        rules:
          - {id: "1", name: "Primera", message: "m", pattern: "a"}
    """)
    loader = YAMLRuleLoader(str(tmp_path))
    snapshot = loader.get_rules()

    write_rules(tmp_path, "a.yaml", """
        rules:
          - {id: "1", name: "Primera", message: "m", pattern: "a", enabled: false}
          - {id: "2", name: "Segunda", message: "m", pattern: "b"}
    """)
    loader.reload()

    # Snapshots handed out earlier are not affected
    assert [r.id for r in snapshot] == ["1"]
    assert [r.id for r in loader.get_enabled_rules()] == ["2"]


def test_defaults_to_configured_directory(tmp_path):
    write_rules(tmp_path, "a.yaml", """
        rules:
          - {id: "1", name: "Primera", message: "m", pattern: "a"}
    """)

    with patch("backend.app.services.validators.yaml_loader.config") as mock_config:
        mock_config.get_rules_dir.return_value = str(tmp_path)
        loader = YAMLRuleLoader()

    assert loader.rules_dir == tmp_path
    assert len(loader.get_rules()) == 1


def test_packaged_default_rules_compile():
    loader = YAMLRuleLoader(str(DEFAULT_RULES_DIR))
    rules = loader.get_rules()

    assert len(rules) >= 3
    rule_set = compile_rules(rules)
    assert rule_set.failures == ()
    assert len(rule_set.rules) == len(loader.get_enabled_rules())
