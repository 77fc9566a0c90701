"""
Batch medical code validation for incoming records.

Wraps the single-field validators to provide:
- Batch validation of many codes at once
- Code type inference from field names
- Normalized (display) forms of each code
- Whole-record validation of a CandidateRecord
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from intake_core.config import get_logger
from intake_core.models import CandidateRecord
from intake_core.validation.validators import (
    ValidationResult,
    format_icd10_code,
    format_npi,
    validate_icd10_code,
    validate_npi,
)


logger = get_logger(__name__)

MAX_ADDITIONAL_DIAGNOSES = 10

EXTERNAL_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,50}$")


class CodeType(str, Enum):
    """Types of codes validated by the engine."""

    NPI = "npi"
    ICD10_CM = "icd10_cm"
    EXTERNAL_ID = "external_id"


class CodeValidationStatus(str, Enum):
    """Status of code validation."""

    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class CodeValidationDetail:
    """
    Detailed validation result for a single code.

    Attributes:
        code: The code that was validated.
        code_type: Type of code.
        status: Validation status.
        message: Human-readable validation message.
        normalized_code: Display form of the code, when valid.
        field_name: Record field the code came from.
    """

    code: str
    code_type: CodeType
    status: CodeValidationStatus
    message: str
    normalized_code: str | None = None
    field_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "code": self.code,
            "code_type": self.code_type.value,
            "status": self.status.value,
            "message": self.message,
            "normalized_code": self.normalized_code,
            "field_name": self.field_name,
        }

    @property
    def is_valid(self) -> bool:
        """Check if code is valid."""
        return self.status == CodeValidationStatus.VALID


@dataclass(slots=True)
class MedicalCodeValidationResult:
    """
    Validation result for all codes of a record.

    Attributes:
        validations: List of individual code validations.
        valid_codes: Codes that passed validation.
        invalid_codes: Codes that failed validation.
        by_type: Validations grouped by code type.
        errors: Record-level problems not tied to a single code.
        overall_valid: Whether everything passed.
        validation_rate: Share of codes that passed.
    """

    validations: list[CodeValidationDetail] = field(default_factory=list)
    valid_codes: list[str] = field(default_factory=list)
    invalid_codes: list[str] = field(default_factory=list)
    by_type: dict[str, list[CodeValidationDetail]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    overall_valid: bool = True
    validation_rate: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "validations": [v.to_dict() for v in self.validations],
            "valid_codes": self.valid_codes,
            "invalid_codes": self.invalid_codes,
            "by_type": {
                k: [v.to_dict() for v in vals]
                for k, vals in self.by_type.items()
            },
            "errors": self.errors,
            "overall_valid": self.overall_valid,
            "validation_rate": self.validation_rate,
        }


class MedicalCodeValidationEngine:
    """
    Batch validation engine for record codes.

    Results are cached per engine instance; engines share no state.

    Example:
        engine = MedicalCodeValidationEngine()
        result = engine.validate_all({
            "referring_provider_npi": "1234567893",
            "primary_diagnosis": "G70.00",
        })

        if not result.overall_valid:
            for code in result.invalid_codes:
                print(f"Invalid: {code}")
    """

    def __init__(self, cache_enabled: bool = True, cache_max_size: int = 1000) -> None:
        """
        Initialize the validation engine.

        Args:
            cache_enabled: Whether to cache validation results.
            cache_max_size: Maximum number of cached results.
        """
        self.cache_enabled = cache_enabled
        self._cache_max_size = cache_max_size
        self._validation_cache: dict[tuple[str, CodeType], CodeValidationDetail] = {}

    def clear_cache(self) -> None:
        """Clear the validation cache."""
        self._validation_cache.clear()

    def _cache_validation(
        self, code: str, code_type: CodeType, result: CodeValidationDetail
    ) -> None:
        """Cache a validation result."""
        if not self.cache_enabled:
            return
        if len(self._validation_cache) >= self._cache_max_size:
            # Evict the oldest 10%
            keys_to_remove = list(self._validation_cache)[: max(1, self._cache_max_size // 10)]
            for key in keys_to_remove:
                self._validation_cache.pop(key, None)
        self._validation_cache[(code, code_type)] = result

    def validate_code(
        self,
        code: str,
        code_type: CodeType,
        field_name: str | None = None,
    ) -> CodeValidationDetail:
        """
        Validate a single code with caching.

        Args:
            code: The code to validate.
            code_type: Type of the code.
            field_name: Record field the code came from.

        Returns:
            CodeValidationDetail with validation result.
        """
        if self.cache_enabled:
            cached = self._validation_cache.get((code, code_type))
            if cached is not None:
                return _with_field_name(cached, field_name)

        validators = {
            CodeType.NPI: self._validate_npi,
            CodeType.ICD10_CM: self._validate_icd10,
            CodeType.EXTERNAL_ID: self._validate_external_id,
        }

        validator = validators.get(code_type)
        if validator is None:
            raise ValueError(f"Unknown code type: {code_type}")

        result = validator(code)
        self._cache_validation(code, code_type, result)
        return _with_field_name(result, field_name)

    def validate_all(
        self,
        data: dict[str, Any],
        code_field_mapping: dict[str, CodeType] | None = None,
    ) -> MedicalCodeValidationResult:
        """
        Validate all codes in a field dictionary.

        Args:
            data: Dictionary of field names to values (a value may be a list).
            code_field_mapping: Mapping of field names to code types;
                inferred from field names when omitted.

        Returns:
            MedicalCodeValidationResult with all validation details.
        """
        if code_field_mapping is None:
            code_field_mapping = self._infer_code_types(data)

        result = MedicalCodeValidationResult()

        for field_name, code_type in code_field_mapping.items():
            value = data.get(field_name)
            if value is None:
                continue

            values = value if isinstance(value, (list, tuple)) else [value]
            for code in values:
                if code:
                    result.validations.append(
                        self.validate_code(str(code), code_type, field_name)
                    )

        self._build_result(result)

        logger.debug(
            "code_validation_complete",
            total=len(result.validations),
            valid=len(result.valid_codes),
            invalid=len(result.invalid_codes),
        )

        return result

    def validate_record(self, candidate: CandidateRecord) -> MedicalCodeValidationResult:
        """
        Validate every coded field of an incoming record.

        Covers the external identifier shape, the referring provider NPI,
        the primary diagnosis and the additional diagnoses.

        Args:
            candidate: Record to validate.

        Returns:
            MedicalCodeValidationResult; record-level problems such as too
            many additional diagnoses are listed in ``errors``.
        """
        result = MedicalCodeValidationResult()

        # Required fields are validated even when blank
        result.validations.append(
            self.validate_code(
                candidate.external_id.strip(), CodeType.EXTERNAL_ID, "external_id"
            )
        )

        if candidate.referring_provider is not None:
            result.validations.append(
                self.validate_code(
                    candidate.referring_provider.npi,
                    CodeType.NPI,
                    "referring_provider_npi",
                )
            )

        if candidate.primary_diagnosis is not None:
            result.validations.append(
                self.validate_code(
                    candidate.primary_diagnosis, CodeType.ICD10_CM, "primary_diagnosis"
                )
            )

        for code in candidate.additional_diagnoses:
            result.validations.append(
                self.validate_code(code, CodeType.ICD10_CM, "additional_diagnoses")
            )

        self._build_result(result)

        if len(candidate.additional_diagnoses) > MAX_ADDITIONAL_DIAGNOSES:
            result.errors.append(
                f"Maximum {MAX_ADDITIONAL_DIAGNOSES} additional diagnoses allowed"
            )
            result.overall_valid = False

        logger.debug(
            "record_validation_complete",
            total=len(result.validations),
            invalid=len(result.invalid_codes),
            errors=len(result.errors),
        )

        return result

    def _validate_npi(self, code: str) -> CodeValidationDetail:
        """Validate NPI checksum."""
        info = validate_npi(code)
        return _to_detail(code, CodeType.NPI, info, format_npi(code))

    def _validate_icd10(self, code: str) -> CodeValidationDetail:
        """Validate ICD-10-CM structure."""
        info = validate_icd10_code(code)
        return _to_detail(code, CodeType.ICD10_CM, info, format_icd10_code(code))

    def _validate_external_id(self, code: str) -> CodeValidationDetail:
        """Validate external record identifier shape."""
        if EXTERNAL_ID_PATTERN.match(code):
            info = ValidationResult.success()
        else:
            info = ValidationResult.failure(
                "External identifier must be 1-50 letters, numbers, or hyphens"
            )
        return _to_detail(code, CodeType.EXTERNAL_ID, info, code)

    def _infer_code_types(
        self,
        data: dict[str, Any],
    ) -> dict[str, CodeType]:
        """Infer code types from field names."""
        mapping: dict[str, CodeType] = {}

        for field_name in data:
            lower_name = field_name.lower()

            if "npi" in lower_name:
                mapping[field_name] = CodeType.NPI
            elif "icd" in lower_name or "diagnos" in lower_name:
                mapping[field_name] = CodeType.ICD10_CM
            elif lower_name in ("mrn", "external_id"):
                mapping[field_name] = CodeType.EXTERNAL_ID

        return mapping

    def _build_result(
        self,
        result: MedicalCodeValidationResult,
    ) -> None:
        """Build result aggregations."""
        for detail in result.validations:
            if detail.is_valid:
                result.valid_codes.append(detail.code)
            else:
                result.invalid_codes.append(detail.code)
                result.overall_valid = False

            result.by_type.setdefault(detail.code_type.value, []).append(detail)

        total = len(result.validations)
        if total > 0:
            result.validation_rate = len(result.valid_codes) / total


def _to_detail(
    code: str,
    code_type: CodeType,
    info: ValidationResult,
    normalized: str,
) -> CodeValidationDetail:
    """Convert a ValidationResult to a CodeValidationDetail."""
    if info.valid:
        return CodeValidationDetail(
            code=code,
            code_type=code_type,
            status=CodeValidationStatus.VALID,
            message="Valid",
            normalized_code=normalized,
        )
    return CodeValidationDetail(
        code=code,
        code_type=code_type,
        status=CodeValidationStatus.INVALID,
        message=info.error or "Invalid",
    )


def _with_field_name(
    detail: CodeValidationDetail, field_name: str | None
) -> CodeValidationDetail:
    """Return the detail attributed to a record field."""
    if detail.field_name == field_name:
        return detail
    return CodeValidationDetail(
        code=detail.code,
        code_type=detail.code_type,
        status=detail.status,
        message=detail.message,
        normalized_code=detail.normalized_code,
        field_name=field_name,
    )


def validate_medical_codes(
    data: dict[str, Any],
    code_field_mapping: dict[str, str] | None = None,
) -> MedicalCodeValidationResult:
    """
    Validate all codes in a field dictionary.

    Convenience function for one-off validation.

    Args:
        data: Dictionary of field names to values.
        code_field_mapping: Mapping of field names to code type strings.

    Returns:
        MedicalCodeValidationResult with all validation details.

    Example:
        result = validate_medical_codes({
            "diagnosis_code": "E11.9",
            "billing_npi": "1234567893",
        })
    """
    engine = MedicalCodeValidationEngine()

    type_mapping: dict[str, CodeType] | None = None
    if code_field_mapping:
        type_mapping = {}
        for field_name, type_str in code_field_mapping.items():
            try:
                type_mapping[field_name] = CodeType(type_str.lower())
            except ValueError:
                logger.warning("unknown_code_type", code_type=type_str, field=field_name)

    return engine.validate_all(data, type_mapping)
