"""
Notebook structure checks.

Header contract: the first cell names the notebook (its file name, without
extension, appears somewhere in the cell, case-insensitive).

Footer contract: the notebook closes with a markdown cell containing the
"Mensaje Final" marker, immediately followed by a code cell that calls
`dbutils.notebook.exit`, and nothing after that.
"""

from __future__ import annotations

import logging
from typing import List

from ..models.notebook import Notebook
from ..models.validation import Finding, Severity
from .file_types import get_base_name

logger = logging.getLogger(__name__)


FOOTER_MARKER = "Mensaje Final"
EXIT_CALL = "dbutils.notebook.exit"

HEADER_INCORRECT = "Header Incorrecto"
FOOTER_MISSING = "Footer Faltante"
FOOTER_INCORRECT = "Footer Incorrecto"
TRAILING_CONTENT = "Código posterior al final"


def validate_header(notebook: Notebook, document_name: str) -> List[Finding]:
    """Zero or one Warning finding; empty notebooks are not checked."""
    if notebook.is_empty():
        return []

    base_name = get_base_name(document_name)
    first_cell = notebook.cells[0]
    if base_name.lower() in first_cell.text.lower():
        return []

    return [Finding(
        document_name=document_name,
        finding_type=HEADER_INCORRECT,
        details=f"La primera celda no contiene el nombre del archivo '{base_name}'.",
        cell_number=1,
        content=first_cell.first_line,
        cell_source_code=first_cell.text,
        severity=Severity.WARNING,
    )]


def find_footer_marker(notebook: Notebook) -> int:
    """
    Index of the last markdown cell containing the footer marker, or -1.

    Only the last marker counts; earlier ones are ignored.
    """
    for index in range(len(notebook.cells) - 1, -1, -1):
        cell = notebook.cells[index]
        if cell.is_markdown and FOOTER_MARKER in "".join(cell.source):
            return index
    return -1


def validate_footer(notebook: Notebook, document_name: str) -> List[Finding]:
    """
    Check the closing marker/exit sequence.

    Returns:
        - one Info finding when the marker is missing (nothing else is checked)
        - one Info finding when the exit cell is missing or wrong
        - one more Info finding when any cell follows the exit cell
    """
    marker_index = find_footer_marker(notebook)
    if marker_index == -1:
        return [Finding(
            document_name=document_name,
            finding_type=FOOTER_MISSING,
            details=f"No se encontró la celda Markdown con '{FOOTER_MARKER}' al final del notebook.",
            severity=Severity.INFO,
        )]

    findings: List[Finding] = []
    exit_index = marker_index + 1

    if exit_index >= len(notebook.cells):
        # Reported on the marker cell itself: there is no exit cell to point at
        findings.append(Finding(
            document_name=document_name,
            finding_type=FOOTER_INCORRECT,
            details=f"Falta la celda de código con '{EXIT_CALL}' después del {FOOTER_MARKER}.",
            cell_number=exit_index,
            severity=Severity.INFO,
        ))
        return findings

    exit_cell = notebook.cells[exit_index]
    if not exit_cell.is_code or EXIT_CALL not in exit_cell.text:
        findings.append(Finding(
            document_name=document_name,
            finding_type=FOOTER_INCORRECT,
            details=f"La celda siguiente al '{FOOTER_MARKER}' no es de código o no contiene '{EXIT_CALL}'.",
            cell_number=exit_index + 1,
            content=exit_cell.first_line,
            cell_source_code=exit_cell.text,
            severity=Severity.INFO,
        ))

    trailing_index = exit_index + 1
    if trailing_index < len(notebook.cells):
        trailing_cell = notebook.cells[trailing_index]
        findings.append(Finding(
            document_name=document_name,
            finding_type=TRAILING_CONTENT,
            details=f"Se encontró una celda después de '{EXIT_CALL}', lo cual no está permitido.",
            cell_number=trailing_index + 1,
            content=trailing_cell.first_line,
            cell_source_code=trailing_cell.text,
            severity=Severity.INFO,
        ))

    if findings:
        logger.debug(f"{document_name}: {len(findings)} footer finding(s)")
    return findings
