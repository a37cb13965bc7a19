"""
YAML Rule Loader for the Notebook Validator

Loads the configurable pattern rules from the rules directory (one or more
.yaml files). This provides a user-friendly way to add, edit or disable rules
without touching Python code.

Schema (version 1.0):

    version: "1.0"
    rules:
      - id: "sql-drop"
        name: "Comando SQL"
        message: "Se encontró un comando SQL destructivo."
        pattern: "\\bDROP\\s+TABLE\\b"
        severity: Critical        # Critical | Warning | Info
        enabled: true             # optional, defaults to true

See data/rules/default.yaml for the rules shipped with the package.
"""

import yaml
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional

from pydantic import ValidationError

from ...models.validation import ValidationRule
from ...config import config

logger = logging.getLogger(__name__)


class RuleStoreError(Exception):
    """Raised when the rules location cannot be used at all."""


class YAMLRuleLoader:
    """
    Loads ValidationRule records from YAML files.

    Files are read in name order, rules in file order, so the snapshot order
    (and therefore finding order) is stable across runs. A broken file or a
    broken entry is logged and skipped; the rest still load.
    """

    def __init__(self, rules_dir: Optional[str] = None):
        """
        Initialize the YAML rule loader.

        Args:
            rules_dir: Directory containing .yaml rule files (defaults to config.get_rules_dir())

        Raises:
            RuleStoreError: If rules_dir exists but is not a directory
        """
        # Use config if no explicit path provided
        if rules_dir is None:
            rules_dir = config.get_rules_dir()
        self.rules_dir = Path(rules_dir)
        if self.rules_dir.exists() and not self.rules_dir.is_dir():
            raise RuleStoreError(f"Rules path is not a directory: {self.rules_dir}")
        self.rules: List[ValidationRule] = []
        self._load_all_rules()

    def _load_all_rules(self) -> None:
        """Load all YAML files from the rules directory into self.rules."""
        if not self.rules_dir.exists():
            logger.warning(f"Rules directory does not exist: {self.rules_dir}")
            logger.warning("No pattern rules will be applied. Create the directory and add .yaml files.")
            return

        yaml_files = sorted(self.rules_dir.glob("*.yaml")) + sorted(self.rules_dir.glob("*.yml"))
        if not yaml_files:
            logger.warning(f"No .yaml files found in {self.rules_dir}")
            return

        logger.info(f"Loading YAML rules from {self.rules_dir}")

        seen_ids = set()
        for yaml_file in yaml_files:
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    document = yaml.safe_load(f)
            except yaml.YAMLError as e:
                logger.error(f"Failed to parse {yaml_file.name}: {e}")
                continue
            except OSError as e:
                logger.error(f"Error loading {yaml_file.name}: {e}")
                continue

            loaded = self._parse_rules(document, yaml_file.name)
            for rule in loaded:
                if rule.id in seen_ids:
                    logger.warning(f"Duplicate rule id '{rule.id}' in {yaml_file.name}, keeping the first one")
                    continue
                seen_ids.add(rule.id)
                self.rules.append(rule)
            logger.info(f"Loaded {len(loaded)} rule(s) from {yaml_file.name}")

        logger.info(f"Total YAML rules loaded: {len(self.rules)} ({len(self.get_enabled_rules())} enabled)")

    def _parse_rules(self, document: Any, source_name: str) -> List[ValidationRule]:
        """
        Turn one parsed YAML document into rules.

        Args:
            document: Result of yaml.safe_load
            source_name: File name, for log messages

        Returns:
            Valid rules, in file order
        """
        if not isinstance(document, dict) or 'rules' not in document:
            logger.warning(f"No 'rules' key found in {source_name}")
            return []

        version = str(document.get('version', '1.0'))
        if version != '1.0':
            logger.warning(f"Unknown rule schema version {version} in {source_name}, reading it as 1.0")

        entries = document.get('rules') or []
        if not isinstance(entries, list):
            logger.warning(f"'rules' in {source_name} must be a list")
            return []

        rules = []
        for position, entry in enumerate(entries, start=1):
            rule = self._parse_rule(entry, source_name, position)
            if rule is not None:
                rules.append(rule)
        return rules

    def _parse_rule(self, entry: Any, source_name: str, position: int) -> Optional[ValidationRule]:
        if not isinstance(entry, dict):
            logger.warning(f"Rule #{position} in {source_name} is not a mapping, skipped")
            return None
        try:
            return ValidationRule(**entry)
        except (ValidationError, TypeError) as e:
            logger.warning(f"Rule #{position} in {source_name} is invalid, skipped: {e}")
            return None

    def reload(self) -> None:
        """Reload all YAML rule files (useful when rules are edited on disk)."""
        logger.info("Reloading YAML rules...")
        self.rules.clear()
        self._load_all_rules()

    def get_rules(self) -> List[ValidationRule]:
        """
        Get the full rule snapshot (enabled and disabled).

        Returns:
            A copy of the loaded rules, in load order
        """
        return list(self.rules)

    def get_enabled_rules(self) -> List[ValidationRule]:
        """Get only the rules that are switched on."""
        return [rule for rule in self.rules if rule.enabled]

    def get_rule_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the loaded rules.

        Returns:
            Dict with counts and the rule names by state
        """
        return {
            'rules_dir': str(self.rules_dir),
            'total': len(self.rules),
            'enabled': [rule.name for rule in self.rules if rule.enabled],
            'disabled': [rule.name for rule in self.rules if not rule.enabled],
        }
