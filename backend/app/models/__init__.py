"""Data models for the Notebook Validator."""

from .notebook import Notebook, Cell, CellType
from .validation import ValidationRule, Finding, Severity, BatchReport

__all__ = [
    "Notebook",
    "Cell",
    "CellType",
    "ValidationRule",
    "Finding",
    "Severity",
    "BatchReport"
]
