"""
Field validators for person record intake.

Provides checksum validation for the National Provider Identifier (NPI)
and structural validation for ICD-10-CM diagnosis codes. Validators never
raise for bad input; every outcome is returned as a ValidationResult.
"""

import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Outcome of a single field validation.

    Attributes:
        valid: Whether the value passed validation.
        error: Human-readable reason when the value is invalid.
    """

    valid: bool
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        """Check if validation passed."""
        return self.valid

    @classmethod
    def success(cls) -> "ValidationResult":
        """Build a passing result."""
        return cls(valid=True)

    @classmethod
    def failure(cls, error: str) -> "ValidationResult":
        """Build a failing result with the given reason."""
        return cls(valid=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"valid": self.valid, "error": self.error}


# =============================================================================
# NPI Validation (National Provider Identifier)
# =============================================================================

# Card issuer prefix for US health applications, prepended before the checksum
NPI_PREFIX = "80840"
NPI_LENGTH = 10

NPI_SEPARATORS = re.compile(r"[\s-]")
NPI_PATTERN = re.compile(r"^[0-9]{10}$")


def normalize_npi(npi: str) -> str:
    """Strip whitespace and hyphens from an NPI."""
    return NPI_SEPARATORS.sub("", npi)


def _luhn_checksum(number: str) -> bool:
    """
    Validate NPI using Luhn algorithm.

    The NPI uses a modified Luhn algorithm with a prefix of 80840.
    """
    full_number = NPI_PREFIX + number

    total = 0
    for i, digit in enumerate(reversed(full_number)):
        d = int(digit)
        if i % 2 == 1:  # Every second digit from the right is doubled
            d *= 2
            if d > 9:
                d -= 9
        total += d

    return total % 10 == 0


def validate_npi(npi: str) -> ValidationResult:
    """
    Validate a National Provider Identifier (NPI).

    NPI is a 10-digit number that must pass the Luhn checksum
    algorithm with the healthcare prefix 80840. Whitespace and hyphens
    are ignored.

    Args:
        npi: NPI to validate.

    Returns:
        ValidationResult with an error message if invalid.

    Example:
        >>> validate_npi("1234567893")
        ValidationResult(valid=True, error=None)
        >>> validate_npi("123-456-789").error
        'NPI must be exactly 10 digits'
    """
    cleaned = normalize_npi(npi)

    if not NPI_PATTERN.match(cleaned):
        return ValidationResult.failure(f"NPI must be exactly {NPI_LENGTH} digits")

    if not _luhn_checksum(cleaned):
        return ValidationResult.failure(
            "NPI check digit is invalid (failed Luhn algorithm)"
        )

    return ValidationResult.success()


def format_npi(npi: str) -> str:
    """
    Format an NPI for display.

    Args:
        npi: Raw NPI string.

    Returns:
        NPI grouped as XXX-XXX-XXXX, or the input unchanged when it does
        not clean to exactly 10 digits.

    Example:
        format_npi("1234567893") -> "123-456-7893"
    """
    cleaned = normalize_npi(npi)

    if not NPI_PATTERN.match(cleaned):
        return npi

    return f"{cleaned[:3]}-{cleaned[3:6]}-{cleaned[6:]}"


# =============================================================================
# ICD-10 Code Validation
# =============================================================================

# Letter + 2 digits + optional decimal followed by 1-4 digits
ICD10_CM_PATTERN = re.compile(r"^[A-Z][0-9]{2}(?:\.[0-9]{1,4})?$")
ICD10_FORMATTABLE_PATTERN = re.compile(r"^[A-Z][0-9]{2}")

# Chapter letters set aside by WHO for provisional assignment
RESERVED_CHAPTERS = frozenset({"U"})


@dataclass(frozen=True, slots=True)
class ChapterRange:
    """Valid category numbers for one ICD-10 chapter letter."""

    min_category: int
    max_category: int
    name: str

    def contains(self, category: int) -> bool:
        """Check if a category number falls within this chapter."""
        return self.min_category <= category <= self.max_category


ICD10_CHAPTERS: dict[str, ChapterRange] = {
    "A": ChapterRange(0, 99, "Certain infectious and parasitic diseases"),
    "B": ChapterRange(0, 99, "Certain infectious and parasitic diseases"),
    "C": ChapterRange(0, 99, "Neoplasms"),
    "D": ChapterRange(0, 99, "Neoplasms and diseases of blood and immune system"),
    "E": ChapterRange(0, 99, "Endocrine, nutritional and metabolic diseases"),
    "F": ChapterRange(0, 99, "Mental, behavioral and neurodevelopmental disorders"),
    "G": ChapterRange(0, 99, "Diseases of the nervous system"),
    "H": ChapterRange(0, 99, "Diseases of the eye, adnexa, ear and mastoid process"),
    "I": ChapterRange(0, 99, "Diseases of the circulatory system"),
    "J": ChapterRange(0, 99, "Diseases of the respiratory system"),
    "K": ChapterRange(0, 99, "Diseases of the digestive system"),
    "L": ChapterRange(0, 99, "Diseases of the skin and subcutaneous tissue"),
    "M": ChapterRange(0, 99, "Diseases of the musculoskeletal system"),
    "N": ChapterRange(0, 99, "Diseases of the genitourinary system"),
    "O": ChapterRange(0, 99, "Pregnancy, childbirth and the puerperium"),
    "P": ChapterRange(0, 99, "Certain conditions originating in the perinatal period"),
    "Q": ChapterRange(0, 99, "Congenital malformations"),
    "R": ChapterRange(0, 99, "Symptoms, signs and abnormal findings"),
    "S": ChapterRange(0, 99, "Injury, poisoning"),
    "T": ChapterRange(0, 99, "Injury, poisoning and external causes"),
    "V": ChapterRange(0, 99, "External causes of morbidity"),
    "W": ChapterRange(0, 99, "External causes of morbidity"),
    "X": ChapterRange(0, 99, "External causes of morbidity"),
    "Y": ChapterRange(0, 99, "External causes of morbidity"),
    "Z": ChapterRange(0, 99, "Factors influencing health status"),
}


def _validate_icd10_category(
    category: str,
    chapters: dict[str, ChapterRange],
) -> ValidationResult:
    """Check the category number against its chapter's range."""
    letter = category[0]
    number = int(category[1:3])

    chapter = chapters.get(letter)
    if chapter is None:
        return ValidationResult.failure(f"Invalid ICD-10 chapter: {letter}")

    if not chapter.contains(number):
        return ValidationResult.failure(
            f"Category {category} is outside valid range for {chapter.name}"
        )

    return ValidationResult.success()


def validate_icd10_code(
    code: str,
    chapters: dict[str, ChapterRange] | None = None,
) -> ValidationResult:
    """
    Validate an ICD-10-CM diagnosis code.

    Checks, in order: shape (letter + 2 digits + optional decimal and
    1-4 digits), chapter letter (U is reserved), and category range for
    the chapter. Surrounding whitespace and letter case are ignored.

    Args:
        code: ICD-10 code to validate.
        chapters: Chapter range table; defaults to ICD10_CHAPTERS.

    Returns:
        ValidationResult with an error message if invalid.

    Example:
        >>> validate_icd10_code("G70.00").valid
        True
        >>> validate_icd10_code("U00.00").valid
        False
    """
    cleaned = code.strip().upper()

    if not ICD10_CM_PATTERN.match(cleaned):
        return ValidationResult.failure(
            "ICD-10 code must be in format: Letter + 2 digits + optional "
            "decimal + up to 4 more digits (e.g., J45.50)"
        )

    chapter = cleaned[0]
    if chapter in RESERVED_CHAPTERS:
        return ValidationResult.failure(
            f"Invalid ICD-10 chapter code: {chapter}. "
            "Must be A-Z excluding U (reserved)."
        )

    return _validate_icd10_category(
        cleaned[:3], ICD10_CHAPTERS if chapters is None else chapters
    )


def format_icd10_code(code: str) -> str:
    """
    Format an ICD-10 code for display, ensuring the decimal is present.

    Args:
        code: Raw ICD-10 code.

    Returns:
        Uppercased code with a single decimal after the category, or the
        input unchanged when it is not at least letter + 2 digits + 1 more.

    Example:
        format_icd10_code("G7000") -> "G70.00"
        format_icd10_code("e11.9") -> "E11.9"
    """
    cleaned = code.strip().upper().replace(".", "")

    if len(cleaned) < 4 or not ICD10_FORMATTABLE_PATTERN.match(cleaned):
        return code

    return f"{cleaned[:3]}.{cleaned[3:]}"
