"""
File type helpers for documents submitted for analysis.

Why this exists:
- The parser needs to know whether a document is a structured notebook (JSON)
  or a plain script, and that decision is made from the file name alone.
- Batch callers only submit notebooks and scripts; anything else is skipped
  before it reaches the analyzer.

This module intentionally does NOT look at file contents.
"""

from __future__ import annotations

from pathlib import PurePath


NOTEBOOK_EXTENSIONS = {
    ".ipynb",
}

SCRIPT_EXTENSIONS = {
    ".py",
}

SUPPORTED_EXTENSIONS = NOTEBOOK_EXTENSIONS | SCRIPT_EXTENSIONS


def _base_name(filename: str) -> str:
    # Accept both POSIX and Windows separators (names may come from uploads)
    name = (filename or "").strip().replace("\\", "/")
    return name.rsplit("/", 1)[-1]


def get_effective_extension(filename: str) -> str:
    """Return the lower-cased extension of a filename (empty when there is none)."""
    return PurePath(_base_name(filename).lower()).suffix


def get_base_name(filename: str) -> str:
    """
    Return the file name without directory or extension.

    `reports/Load_Customers.ipynb` -> `Load_Customers`
    """
    return PurePath(_base_name(filename)).stem


def is_structured_notebook(filename: str) -> bool:
    """True when the file should be parsed as a JSON notebook."""
    return get_effective_extension(filename) in NOTEBOOK_EXTENSIONS


def is_supported_file(filename: str) -> bool:
    """True for the document kinds the analyzer accepts (notebooks and scripts)."""
    return get_effective_extension(filename) in SUPPORTED_EXTENSIONS
