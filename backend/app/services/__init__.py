"""Services for the Notebook Validator."""

from .notebook_parser import FormatError, parse_document
from .rule_engine import RuleCompilationError, compile_rules, scan_rules
from .notebook_validator_service import NotebookValidatorService

__all__ = [
    "FormatError",
    "parse_document",
    "RuleCompilationError",
    "compile_rules",
    "scan_rules",
    "NotebookValidatorService"
]
