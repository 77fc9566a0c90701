"""
Utility modules for the record intake core.

Provides string normalization and similarity scoring.
"""

from intake_core.utils.string_utils import (
    common_prefix_length,
    jaro_similarity,
    jaro_winkler_similarity,
    normalize_for_matching,
    normalize_whitespace,
)


__all__ = [
    "normalize_whitespace",
    "normalize_for_matching",
    "common_prefix_length",
    "jaro_similarity",
    "jaro_winkler_similarity",
]
