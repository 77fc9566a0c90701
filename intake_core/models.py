"""
Record types exchanged with the embedding application.

All values are request-scoped: they are built per validation or detection
call and never persisted by this package.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class ProviderReference:
    """
    Organizational identifier supplied with an incoming record.

    Attributes:
        name: Provider name as entered.
        npi: National Provider Identifier as entered.
    """

    name: str
    npi: str


@dataclass(frozen=True, slots=True)
class CandidateRecord:
    """
    Incoming person record being validated.

    Attributes:
        first_name: Given name.
        last_name: Family name.
        external_id: Record number such as an MRN (typically 6-10 chars).
        subject_detail: Free-text medical record.
        referring_provider: Provider the record is attributed to.
        primary_diagnosis: ICD-10 code of the primary diagnosis.
        additional_diagnoses: Further ICD-10 codes.
    """

    first_name: str
    last_name: str
    external_id: str
    subject_detail: str = ""
    referring_provider: ProviderReference | None = None
    primary_diagnosis: str | None = None
    additional_diagnoses: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True, slots=True)
class ExistingRecord:
    """Person record already held by the record store."""

    id: str
    first_name: str
    last_name: str
    identifier: str

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True, slots=True)
class ProviderRecord:
    """Provider already registered in the record store under an NPI."""

    id: str
    name: str
    npi: str


@dataclass(frozen=True, slots=True)
class OrderCandidate:
    """Incoming medication order for an existing patient."""

    patient_id: str
    medication_name: str


@dataclass(frozen=True, slots=True)
class ExistingOrder:
    """Medication order already held by the record store."""

    id: str
    patient_id: str
    medication_name: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class SimilarityBreakdown:
    """
    Per-field and composite similarity of two person records.

    Attributes:
        first_name_score: First name similarity 0.0-1.0.
        last_name_score: Last name similarity 0.0-1.0.
        identifier_score: Identifier prefix similarity 0.0-1.0.
        total_score: Weighted composite 0.0-1.0.
    """

    first_name_score: float
    last_name_score: float
    identifier_score: float
    total_score: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "first_name_score": self.first_name_score,
            "last_name_score": self.last_name_score,
            "identifier_score": self.identifier_score,
            "total_score": self.total_score,
        }


@dataclass(slots=True)
class CandidateBatch:
    """Existing records handed to the engine, after bounding."""

    records: list[ExistingRecord] = field(default_factory=list)
    truncated: bool = False
