"""
Validation module for incoming record identifiers and codes.

Components:
- validators.py: NPI checksum and ICD-10-CM structural validators
- medical_codes.py: Batch and whole-record code validation

Usage:
    from intake_core.validation import (
        validate_npi,
        format_npi,
        validate_icd10_code,
        format_icd10_code,
        MedicalCodeValidationEngine,
    )
"""

from intake_core.validation.validators import (
    ICD10_CHAPTERS,
    ChapterRange,
    ValidationResult,
    format_icd10_code,
    format_npi,
    normalize_npi,
    validate_icd10_code,
    validate_npi,
)
from intake_core.validation.medical_codes import (
    CodeType,
    CodeValidationDetail,
    CodeValidationStatus,
    MedicalCodeValidationEngine,
    MedicalCodeValidationResult,
    validate_medical_codes,
)


__all__ = [
    # Field validators
    "ValidationResult",
    "ChapterRange",
    "ICD10_CHAPTERS",
    "validate_npi",
    "format_npi",
    "normalize_npi",
    "validate_icd10_code",
    "format_icd10_code",
    # Batch validation
    "CodeType",
    "CodeValidationStatus",
    "CodeValidationDetail",
    "MedicalCodeValidationResult",
    "MedicalCodeValidationEngine",
    "validate_medical_codes",
]
