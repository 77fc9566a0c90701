"""
Structured warnings produced by duplicate detection.

Warnings are non-blocking findings: the embedding application decides
whether to link, block or merge.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class WarningKind(str, Enum):
    """Kinds of duplicate and conflict findings."""

    DUPLICATE_EXACT = "DUPLICATE_EXACT"
    SIMILAR_RECORD = "SIMILAR_RECORD"
    IDENTIFIER_CONFLICT = "IDENTIFIER_CONFLICT"
    DUPLICATE_ORDER = "DUPLICATE_ORDER"


class WarningSeverity(str, Enum):
    """Severity level of a warning."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    WarningSeverity.LOW: 0,
    WarningSeverity.MEDIUM: 1,
    WarningSeverity.HIGH: 2,
}


@dataclass(frozen=True, slots=True)
class RecordWarning:
    """
    A possible duplicate or conflict found for an incoming record.

    Attributes:
        kind: Type of finding.
        severity: Severity level.
        message: Human-readable description.
        referenced_record_id: Id of the existing record involved.
        score: Composite similarity score, for similarity findings.
        details: Kind-specific context (names, identifiers, dates), held
            as a read-only mapping.

    Warnings compare by value but are unhashable, since ``details`` is a
    mapping.
    """

    kind: WarningKind
    severity: WarningSeverity
    message: str
    referenced_record_id: str
    score: float | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "referenced_record_id": self.referenced_record_id,
            "score": self.score,
            "details": dict(self.details),
        }


def sort_warnings(warnings: Iterable[RecordWarning]) -> list[RecordWarning]:
    """
    Order warnings by descending severity, then descending score.

    The sort is stable: warnings that tie keep their input order, and
    warnings without a score sort as if they scored 0.
    """
    return sorted(
        warnings,
        key=lambda w: (-w.severity.rank, -(w.score if w.score is not None else 0.0)),
    )
