"""
Notebook Validator Service

Orchestrates the analysis of one document, or a batch of them:
1. Parse raw bytes into a Notebook (read errors become a single finding)
2. Structural checks: header, unused widget variables, unused imports, footer
3. Configurable pattern rules, line by line over code cells

Each check is an independent function over the same immutable Notebook, so a
document can be analyzed on any thread; a batch fans out over a thread pool
and shares one compiled rule snapshot.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..config import config
from ..models.notebook import Notebook
from ..models.validation import BatchReport, Finding, Severity, ValidationRule
from .file_types import is_supported_file
from .notebook_parser import FormatError, parse_document
from .rule_engine import CompiledRuleSet, compile_rules, scan_rules
from .structure_validator import validate_footer, validate_header
from .symbol_scanner import find_unused_imports, find_unused_widget_variables
from .validators import YAMLRuleLoader

logger = logging.getLogger(__name__)


READ_ERROR = "Error de Lectura"
ANALYSIS_ERROR = "Error de Análisis"


class NotebookValidatorService:
    """
    Entry point for notebook analysis.

    The rule snapshot comes from, in order: the `rules` argument of each call,
    the `rules` given at construction, or the YAML rule store (loaded lazily,
    once).
    """

    def __init__(
        self,
        rules: Optional[Sequence[ValidationRule]] = None,
        rule_loader: Optional[YAMLRuleLoader] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the validator service.

        Args:
            rules: Fixed rule snapshot to use instead of the rule store
            rule_loader: Rule store to read the snapshot from (defaults to YAMLRuleLoader())
            max_workers: Batch worker pool size (defaults to config.get_max_workers())
        """
        self._rules = list(rules) if rules is not None else None
        self._rule_loader = rule_loader
        self.max_workers = max_workers if max_workers is not None else config.get_max_workers()

    def get_rule_snapshot(self) -> List[ValidationRule]:
        """Return the rule snapshot used when a call does not pass its own rules."""
        if self._rules is not None:
            return list(self._rules)
        if self._rule_loader is None:
            self._rule_loader = YAMLRuleLoader()
        return self._rule_loader.get_rules()

    def compile(self, rules: Optional[Sequence[ValidationRule]] = None) -> CompiledRuleSet:
        """Compile a snapshot (or the default one) for reuse across documents."""
        snapshot = list(rules) if rules is not None else self.get_rule_snapshot()
        rule_set = compile_rules(snapshot)
        logger.debug(f"Compiled {len(rule_set.rules)} rule(s), {len(rule_set.failures)} invalid")
        return rule_set

    def analyze_document(
        self,
        raw_bytes: bytes,
        file_name: str,
        rules: Optional[Union[Sequence[ValidationRule], CompiledRuleSet]] = None,
    ) -> List[Finding]:
        """
        Analyze one document.

        Args:
            raw_bytes: Document content
            file_name: Original file name (selects the format, names the findings)
            rules: Rule snapshot, an already compiled CompiledRuleSet, or None for the default

        Returns:
            Findings in emission order: header, widget variables, imports,
            footer, then pattern rule findings cell by cell
        """
        rule_set = rules if isinstance(rules, CompiledRuleSet) else self.compile(rules)

        try:
            notebook = parse_document(raw_bytes, file_name)
        except FormatError as e:
            logger.warning(f"Could not parse {file_name}: {e}")
            return [_read_error(file_name, e)]

        try:
            findings = self._run_checks(notebook, file_name, rule_set)
        except Exception as e:
            logger.error(f"Analysis of {file_name} failed: {e}", exc_info=True)
            return [_analysis_error(file_name, e)]

        logger.debug(f"{file_name}: {len(findings)} finding(s) in {len(notebook)} cell(s)")
        return findings

    def _run_checks(self, notebook: Notebook, file_name: str, rule_set: CompiledRuleSet) -> List[Finding]:
        findings: List[Finding] = []
        findings.extend(validate_header(notebook, file_name))
        findings.extend(find_unused_widget_variables(notebook, file_name))
        findings.extend(find_unused_imports(notebook, file_name))
        findings.extend(validate_footer(notebook, file_name))
        findings.extend(scan_rules(notebook, rule_set, file_name))
        return findings

    def analyze_file(
        self,
        path: Union[str, Path],
        rules: Optional[Union[Sequence[ValidationRule], CompiledRuleSet]] = None,
        file_name: Optional[str] = None,
    ) -> List[Finding]:
        """
        Read a document from disk and analyze it.

        Args:
            path: File to read
            rules: Same as analyze_document
            file_name: Name to report (defaults to the file's own name)
        """
        path = Path(path)
        file_name = file_name or path.name
        try:
            raw_bytes = path.read_bytes()
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return [_read_error(file_name, e)]
        return self.analyze_document(raw_bytes, file_name, rules)

    def analyze_batch(
        self,
        documents: Iterable[Tuple[str, bytes]],
        rules: Optional[Sequence[ValidationRule]] = None,
    ) -> BatchReport:
        """
        Analyze many documents concurrently with one shared rule snapshot.

        Args:
            documents: (file name, raw bytes) pairs; unsupported file types are skipped
            rules: Rule snapshot for the whole batch (None for the default)

        Returns:
            BatchReport with findings concatenated in input order
        """
        accepted = []
        for file_name, raw_bytes in documents:
            if not is_supported_file(file_name):
                logger.info(f"Skipping unsupported file: {file_name}")
                continue
            accepted.append((file_name, raw_bytes))

        if not accepted:
            return BatchReport()

        findings: List[Finding] = []
        for document_findings in self._analyze_each(accepted, rules):
            findings.extend(document_findings)

        report = BatchReport(findings=findings, total_documents=len(accepted))
        logger.info(f"Batch finished: {report.total_findings} finding(s) in {report.total_documents} document(s)")
        return report

    def analyze_paths(
        self,
        paths: Iterable[Union[str, Path]],
        rules: Optional[Sequence[ValidationRule]] = None,
    ) -> BatchReport:
        """
        Batch analysis of files on disk, on the same worker pool as analyze_batch.

        Unreadable files are reported as read errors, at their place in input
        order, and count as analyzed.
        """
        documents = []
        for path in paths:
            path = Path(path)
            if not is_supported_file(path.name):
                logger.info(f"Skipping unsupported file: {path}")
                continue
            try:
                documents.append((path.name, path.read_bytes()))
            except OSError as e:
                logger.warning(f"Could not read {path}: {e}")
                documents.append((path.name, _read_error(path.name, e)))

        readable = [(name, raw) for name, raw in documents if not isinstance(raw, Finding)]
        results = iter(self._analyze_each(readable, rules)) if readable else iter(())

        findings: List[Finding] = []
        for _, raw in documents:
            if isinstance(raw, Finding):
                findings.append(raw)
            else:
                findings.extend(next(results))
        return BatchReport(findings=findings, total_documents=len(documents))

    def _analyze_each(
        self,
        documents: List[Tuple[str, bytes]],
        rules: Optional[Sequence[ValidationRule]],
    ) -> List[List[Finding]]:
        """Analyze documents on the worker pool; one findings list per document, in input order."""
        rule_set = self.compile(rules)
        workers = min(self.max_workers, len(documents)) if self.max_workers else None
        logger.info(f"Analyzing {len(documents)} document(s) with {workers or 'default'} worker(s)")

        results: List[List[Finding]] = []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (file_name, executor.submit(self.analyze_document, raw_bytes, file_name, rule_set))
                for file_name, raw_bytes in documents
            ]
            for file_name, future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    # One broken document must not sink the batch
                    logger.error(f"Analysis of {file_name} failed: {e}", exc_info=True)
                    results.append([_analysis_error(file_name, e)])
        return results


def _read_error(file_name: str, error: Exception) -> Finding:
    return Finding(
        document_name=file_name,
        finding_type=READ_ERROR,
        details=f"No se pudo leer o procesar el archivo: {error}",
        severity=Severity.CRITICAL,
    )


def _analysis_error(file_name: str, error: Exception) -> Finding:
    return Finding(
        document_name=file_name,
        finding_type=ANALYSIS_ERROR,
        details=f"El análisis del archivo falló inesperadamente: {error}",
        severity=Severity.CRITICAL,
    )
