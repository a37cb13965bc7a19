"""
Version import for the Notebook Validator backend.

Single source of truth: notebookvalidator/_version.py
"""

from notebookvalidator._version import __version__
