"""
Document models for the Notebook Validator.

A notebook is an ordered sequence of cells; each cell keeps its source as an
ordered list of lines. These models are immutable once parsed so that every
check can read the same instance, from any thread, without copying it.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CellType(str, Enum):
    """Types of cells in a notebook."""
    CODE = "code"          # Executable source
    MARKDOWN = "markdown"  # Documentation cells
    RAW = "raw"            # Raw cells (never analyzed)
    UNKNOWN = "unknown"    # Missing or unrecognized cell_type

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "CellType":
        """Map a notebook ``cell_type`` string exactly, falling back to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class Cell(BaseModel):
    """A single cell in a notebook."""

    model_config = ConfigDict(frozen=True)

    cell_type: CellType = CellType.UNKNOWN
    source: Tuple[str, ...] = Field(default_factory=tuple)

    @property
    def is_code(self) -> bool:
        return self.cell_type == CellType.CODE

    @property
    def is_markdown(self) -> bool:
        return self.cell_type == CellType.MARKDOWN

    @property
    def text(self) -> str:
        """Full cell source: lines joined with newline separators."""
        return "\n".join(self.source)

    @property
    def first_line(self) -> str:
        """First line of the cell, trimmed."""
        return self.text.split("\n", 1)[0].strip()


class Notebook(BaseModel):
    """A parsed notebook: an ordered, immutable sequence of cells."""

    model_config = ConfigDict(frozen=True)

    cells: Tuple[Cell, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.cells)

    def is_empty(self) -> bool:
        return not self.cells

    def code_cells(self):
        """Yield ``(cell_index, cell)`` for every code cell, in document order."""
        for index, cell in enumerate(self.cells):
            if cell.is_code:
                yield index, cell
