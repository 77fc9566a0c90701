"""
Duplicate detection module for incoming person records.

Components:
- detector.py: Weighted Jaro-Winkler duplicate, conflict and order checks
- warnings.py: Structured warning types and ordering

Usage:
    from intake_core.duplicates import DuplicateDetector, detect_duplicates

    warnings = detect_duplicates(candidate, lambda: store.find_recent_candidates(100))
"""

from intake_core.duplicates.detector import (
    DuplicateDetector,
    ProviderDirectory,
    RecordStore,
    detect_duplicates,
)
from intake_core.duplicates.warnings import (
    RecordWarning,
    WarningKind,
    WarningSeverity,
    sort_warnings,
)


__all__ = [
    # Detection
    "DuplicateDetector",
    "RecordStore",
    "ProviderDirectory",
    "detect_duplicates",
    # Warnings
    "RecordWarning",
    "WarningKind",
    "WarningSeverity",
    "sort_warnings",
]
