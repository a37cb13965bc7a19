"""
Rule store for the Notebook Validator.

Pattern rules are data, not code: they live in YAML files under the rules
directory (see data/rules/default.yaml) and are loaded into ValidationRule
records by YAMLRuleLoader. Users can add custom rules by:
1. Creating YAML files in the rules directory
2. Following the schema documented in yaml_loader.py
"""

from .yaml_loader import YAMLRuleLoader, RuleStoreError

__all__ = [
    "YAMLRuleLoader",
    "RuleStoreError"
]
