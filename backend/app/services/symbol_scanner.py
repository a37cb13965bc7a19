"""
Symbol scanner (lexical, cross-cell).

Finds two kinds of declarations in code cells and reports the ones that are
never referenced anywhere else in the notebook:
- imports (`import x [as y]`, `from m import x [as y]`)
- widget variables (`name = dbutils.widgets.get(...)`)

Design intent:
- Usage is a whole-word regex match on any other code line, in any cell.
  There is no parsing: a name mentioned inside a string literal or a comment
  counts as used. Callers rely on that (it keeps false positives low), so do
  not replace it with an AST walk.
- Each declaration is judged on its own. Importing the same module twice and
  using it nowhere yields two findings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..models.notebook import Notebook
from ..models.validation import Finding, Severity

logger = logging.getLogger(__name__)


UNUSED_IMPORT = "Importación no usada"
UNUSED_WIDGET_VARIABLE = "Variable de widget no usada"

_IMPORT_RE = re.compile(
    r"^\s*import\s+([A-Za-z0-9_]+(?:\.[A-Za-z0-9_]+)*)(?:\s+as\s+([A-Za-z0-9_]+))?"
)
_FROM_IMPORT_RE = re.compile(
    r"^\s*from\s+[A-Za-z0-9_.]+\s+import\s+\(?\s*([A-Za-z0-9_]+)(?:\s+as\s+([A-Za-z0-9_]+))?"
)
_WIDGET_ASSIGNMENT_RE = re.compile(
    r"^\s*([A-Za-z0-9_]+)\s*=\s*dbutils\.widgets\.get\s*\("
)

# Lines that merely echo or forward a widget value do not count as using it
WIDGET_IGNORED_PREFIXES = ("print(", "spark.conf.set(")


@dataclass(frozen=True)
class Declaration:
    """Where a symbol comes into existence (0-based positions)."""

    symbol_name: str
    cell_index: int
    line_index: int
    raw_line: str

    @property
    def cell_number(self) -> int:
        return self.cell_index + 1

    @property
    def line_number(self) -> int:
        return self.line_index + 1


def scan_imports(notebook: Notebook) -> List[Declaration]:
    """Collect import declarations from code cells, in document order."""
    declarations: List[Declaration] = []
    for cell_index, cell in notebook.code_cells():
        for line_index, line in enumerate(cell.source):
            match = _IMPORT_RE.match(line) or _FROM_IMPORT_RE.match(line)
            if not match:
                continue
            module_or_name, alias = match.group(1), match.group(2)
            # `import os.path` binds `os`
            symbol = alias or module_or_name.split(".", 1)[0]
            declarations.append(Declaration(symbol, cell_index, line_index, line.strip()))
    return declarations


def scan_widget_variables(notebook: Notebook) -> List[Declaration]:
    """Collect `name = dbutils.widgets.get(...)` declarations from code cells."""
    declarations: List[Declaration] = []
    for cell_index, cell in notebook.code_cells():
        for line_index, line in enumerate(cell.source):
            match = _WIDGET_ASSIGNMENT_RE.match(line)
            if match:
                declarations.append(Declaration(match.group(1), cell_index, line_index, line.strip()))
    return declarations


def is_symbol_used(
    declaration: Declaration,
    notebook: Notebook,
    ignored_prefixes: Sequence[str] = (),
) -> bool:
    """
    Whether the declared symbol appears, as a whole word, on any other code line.

    Args:
        declaration: The declaration to look up (its own line never counts)
        notebook: Notebook to search
        ignored_prefixes: Lines whose trimmed text starts with one of these are skipped

    Returns:
        True on the first matching line found
    """
    usage_re = re.compile(r"\b" + re.escape(declaration.symbol_name) + r"\b")
    for cell_index, cell in notebook.code_cells():
        for line_index, line in enumerate(cell.source):
            if cell_index == declaration.cell_index and line_index == declaration.line_index:
                continue
            if ignored_prefixes and line.strip().startswith(tuple(ignored_prefixes)):
                continue
            if usage_re.search(line):
                return True
    return False


def find_unused_imports(notebook: Notebook, document_name: str) -> List[Finding]:
    """One Warning finding per import whose symbol is never referenced."""
    unused = [d for d in scan_imports(notebook) if not is_symbol_used(d, notebook)]
    return list(_to_findings(
        unused,
        notebook,
        document_name,
        UNUSED_IMPORT,
        "La librería o módulo '{name}' se importa pero no se utiliza en el notebook.",
    ))


def find_unused_widget_variables(notebook: Notebook, document_name: str) -> List[Finding]:
    """One Warning finding per widget variable that is never used (prints and conf setters ignored)."""
    unused = [
        d for d in scan_widget_variables(notebook)
        if not is_symbol_used(d, notebook, WIDGET_IGNORED_PREFIXES)
    ]
    return list(_to_findings(
        unused,
        notebook,
        document_name,
        UNUSED_WIDGET_VARIABLE,
        "La variable '{name}' se obtiene de un widget pero no se usa posteriormente "
        "(ignorando prints y spark.conf.set).",
    ))


def _to_findings(
    declarations: Iterable[Declaration],
    notebook: Notebook,
    document_name: str,
    finding_type: str,
    details_template: str,
) -> Iterable[Finding]:
    for declaration in declarations:
        logger.debug(f"{document_name}: unused symbol '{declaration.symbol_name}' "
                     f"at cell {declaration.cell_number}, line {declaration.line_number}")
        yield Finding(
            document_name=document_name,
            finding_type=finding_type,
            details=details_template.format(name=declaration.symbol_name),
            cell_number=declaration.cell_number,
            line_number=declaration.line_number,
            content=declaration.raw_line,
            cell_source_code=notebook.cells[declaration.cell_index].text,
            severity=Severity.WARNING,
        )
