"""
Notebook parser.

Turns the raw bytes of a submitted document into an immutable `Notebook`.

Two input shapes are accepted:
- `.ipynb`: JSON object with a top-level `cells` array; each cell has a
  `cell_type` and a `source` (list of lines, or a single string).
- anything else: a plain script, wrapped as one code cell split on newlines.
  Scripts in a legacy encoding still parse; undecodable bytes become U+FFFD.

Unknown fields are ignored and missing ones default to empty. A notebook that
cannot be decoded raises `FormatError`; turning that into a finding is the
caller's job.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Tuple

from ..models.notebook import Cell, CellType, Notebook
from .file_types import is_structured_notebook

logger = logging.getLogger(__name__)


class FormatError(ValueError):
    """Raised when document bytes are not valid for the declared file type."""


def parse_document(raw_bytes: bytes, file_name: str) -> Notebook:
    """
    Parse raw document bytes into a Notebook.

    Args:
        raw_bytes: Document content as uploaded
        file_name: Original file name; its extension selects the format

    Returns:
        Parsed Notebook (possibly empty)

    Raises:
        FormatError: If the bytes cannot be decoded for the declared format
    """
    if is_structured_notebook(file_name):
        notebook = _parse_ipynb(_decode(raw_bytes))
    else:
        text = _decode(raw_bytes, errors="replace")
        notebook = Notebook(cells=(Cell(cell_type=CellType.CODE, source=tuple(text.split("\n"))),))

    logger.debug(f"Parsed {file_name}: {len(notebook)} cell(s)")
    return notebook


def _decode(raw_bytes: bytes, errors: str = "strict") -> str:
    if isinstance(raw_bytes, str):
        return raw_bytes
    try:
        # utf-8-sig drops a leading BOM, which editors on Windows like to add
        return bytes(raw_bytes).decode("utf-8-sig", errors=errors)
    except UnicodeDecodeError as e:
        raise FormatError(f"Content is not valid UTF-8: {e}") from e


def _parse_ipynb(text: str) -> Notebook:
    try:
        # ValueError also covers integers past the interpreter's digit limit
        document = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise FormatError(f"Invalid notebook JSON: {e}") from e

    if not isinstance(document, dict):
        raise FormatError(f"Notebook root must be a JSON object, got {type(document).__name__}")

    raw_cells = document.get("cells")
    if raw_cells is None:
        return Notebook()
    if not isinstance(raw_cells, list):
        raise FormatError(f"'cells' must be an array, got {type(raw_cells).__name__}")

    cells = [_parse_cell(index, raw_cell) for index, raw_cell in enumerate(raw_cells)]
    return Notebook(cells=tuple(cells))


def _parse_cell(index: int, raw_cell: Any) -> Cell:
    if not isinstance(raw_cell, dict):
        raise FormatError(f"Cell {index + 1} must be a JSON object, got {type(raw_cell).__name__}")

    cell_type = raw_cell.get("cell_type")
    if cell_type is not None and not isinstance(cell_type, str):
        raise FormatError(f"Cell {index + 1} has a non-string 'cell_type'")

    return Cell(
        cell_type=CellType.from_raw(cell_type),
        source=_parse_source(index, raw_cell.get("source")),
    )


def _parse_source(index: int, source: Any) -> Tuple[str, ...]:
    if source is None:
        return ()

    # nbformat allows a multiline string in place of the list of lines
    if isinstance(source, str):
        return tuple(source.split("\n")) if source else ()

    if not isinstance(source, list):
        raise FormatError(f"Cell {index + 1} has a 'source' that is neither a string nor an array")

    lines: List[str] = []
    for line in source:
        if not isinstance(line, str):
            raise FormatError(f"Cell {index + 1} has a non-string entry in 'source'")
        # Jupyter stores each line with its newline terminator; a line is its text only
        if line.endswith("\r\n"):
            line = line[:-2]
        elif line.endswith("\n"):
            line = line[:-1]
        lines.append(line)
    return tuple(lines)
