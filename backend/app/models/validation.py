"""
Validation Models for the Notebook Validator

Defines the data exchanged between the analyzer and its callers:
- ValidationRule: a user-configurable regex rule (read-only input)
- Finding: one reported issue with position and severity (the sole output)
- BatchReport: findings of a whole batch plus aggregate counts

Findings are plain Pydantic models so callers can persist, serialize or render
them without knowing anything about the analyzer.
"""

from collections import Counter
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Severity level for findings and rules."""
    CRITICAL = "Critical"  # Analysis could not be trusted (unreadable file, broken rule)
    WARNING = "Warning"    # Should be fixed before the notebook is promoted
    INFO = "Info"          # Convention issue, informational

    @classmethod
    def _missing_(cls, value):
        # Accept "warning", "WARNING", " Info " and friends
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


class ValidationRule(BaseModel):
    """
    A configurable pattern rule.

    Rules are owned by an external configuration store; the analyzer only reads
    them. The same snapshot is shared, unchanged, by every document of a batch.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier of the rule")
    name: str = Field(..., description="Display name, reported as the finding type")
    message: str = Field(..., description="Human-readable message reported as finding details")
    pattern: str = Field(..., description="Regular expression tested against each code line")
    severity: Severity = Field(default=Severity.WARNING, description="Severity of the findings it produces")
    enabled: bool = Field(default=True, description="Disabled rules are never compiled")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Database-backed stores hand out integer ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value):
        if isinstance(value, str):
            return Severity(value)
        return value


class Finding(BaseModel):
    """
    A single issue reported for a document.

    Cell and line numbers are 1-based. Document-level findings (read errors,
    missing footer) carry no position.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "document_name": "load_customers.ipynb",
                "finding_type": "Importación no usada",
                "details": "La librería o módulo 'os' se importa pero no se utiliza en el notebook.",
                "cell_number": 2,
                "line_number": 1,
                "content": "import os",
                "cell_source_code": "import os\nimport json",
                "severity": "Warning",
            }
        },
    )

    document_name: str
    finding_type: str
    details: str
    cell_number: Optional[int] = None
    line_number: Optional[int] = None
    content: Optional[str] = None
    cell_source_code: Optional[str] = None
    severity: Severity = Severity.INFO


class BatchReport(BaseModel):
    """Aggregated results of analyzing a batch of documents."""

    findings: List[Finding] = Field(default_factory=list)
    total_documents: int = 0

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def has_results(self) -> bool:
        return bool(self.findings)

    def summary_by_type(self) -> Dict[str, int]:
        """Count findings per finding type, in first-seen order."""
        return dict(Counter(f.finding_type for f in self.findings))

    def summary_by_severity(self) -> Dict[str, int]:
        """Count findings per severity (every severity present, zero included)."""
        counts = Counter(f.severity for f in self.findings)
        return {severity.value: counts.get(severity, 0) for severity in Severity}

    def findings_for(self, document_name: str) -> List[Finding]:
        """Findings reported for one document, in emission order."""
        return [f for f in self.findings if f.document_name == document_name]
