"""
Patient Intake Core.

Pure validation and duplicate detection for incoming person records:
NPI checksum validation, ICD-10-CM structural validation, Jaro-Winkler
similarity scoring and duplicate/conflict warnings. Record-store access
is injected by the embedding application.

Usage:
    from intake_core import validate_npi, validate_icd10_code, detect_duplicates
    from intake_core import CandidateRecord, ExistingRecord
"""

from importlib.metadata import PackageNotFoundError, version

from intake_core.config import configure_logging, get_logger, get_settings
from intake_core.duplicates import (
    DuplicateDetector,
    RecordStore,
    RecordWarning,
    WarningKind,
    WarningSeverity,
    detect_duplicates,
    sort_warnings,
)
from intake_core.models import (
    CandidateRecord,
    ExistingOrder,
    ExistingRecord,
    OrderCandidate,
    ProviderRecord,
    ProviderReference,
    SimilarityBreakdown,
)
from intake_core.utils import jaro_similarity, jaro_winkler_similarity
from intake_core.validation import (
    MedicalCodeValidationEngine,
    ValidationResult,
    format_icd10_code,
    format_npi,
    validate_icd10_code,
    validate_npi,
)


try:
    __version__ = version("patient-intake-core")
except PackageNotFoundError:
    __version__ = "1.0.0"

__all__ = [
    # Package info
    "__version__",
    # Configuration
    "get_settings",
    "get_logger",
    "configure_logging",
    # Records
    "CandidateRecord",
    "ExistingRecord",
    "ExistingOrder",
    "OrderCandidate",
    "ProviderRecord",
    "ProviderReference",
    "SimilarityBreakdown",
    # Similarity
    "jaro_similarity",
    "jaro_winkler_similarity",
    # Validation
    "ValidationResult",
    "validate_npi",
    "format_npi",
    "validate_icd10_code",
    "format_icd10_code",
    "MedicalCodeValidationEngine",
    # Duplicate detection
    "DuplicateDetector",
    "RecordStore",
    "RecordWarning",
    "WarningKind",
    "WarningSeverity",
    "detect_duplicates",
    "sort_warnings",
]
