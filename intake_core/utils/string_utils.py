"""
String utility functions for record matching.

Provides normalization and edit-tolerant similarity scoring used to
compare names and identifiers of person records.
"""

# Jaro-Winkler prefix boost parameters
PREFIX_SCALE = 0.1
MAX_PREFIX_LENGTH = 4


def normalize_whitespace(text: str) -> str:
    """
    Normalize whitespace in text.

    Collapses multiple spaces, tabs, newlines into single spaces.

    Args:
        text: Text to normalize.

    Returns:
        Text with normalized whitespace.

    Example:
        normalize_whitespace("Hello   World\\n\\n") -> "Hello World"
    """
    if not text:
        return ""

    return " ".join(text.split())


def normalize_for_matching(text: str) -> str:
    """
    Normalize a field value before similarity scoring.

    The similarity functions are case-sensitive, so callers fold case
    and whitespace here first.

    Example:
        normalize_for_matching("  McDonald ") -> "mcdonald"
    """
    return normalize_whitespace(text).lower()


def jaro_similarity(s1: str, s2: str) -> float:
    """
    Calculate the Jaro similarity between two strings.

    Characters match when they are equal and no further apart than
    ``max(len) // 2 - 1`` positions. The score combines the matched
    fraction of each string with the share of matches that are in order.

    Args:
        s1: First string.
        s2: Second string.

    Returns:
        Similarity from 0.0 to 1.0.

    Example:
        jaro_similarity("martha", "marhta") -> 0.944
    """
    if not s1 or not s2:
        return 0.0

    if s1 == s2:
        return 1.0

    # Scan in a canonical order so the greedy matching is symmetric
    if s1 > s2:
        s1, s2 = s2, s1

    len1 = len(s1)
    len2 = len(s2)

    match_distance = max(len1, len2) // 2 - 1
    if match_distance < 0:
        return 0.0

    s1_matches = [False] * len1
    s2_matches = [False] * len2
    matches = 0

    for i, char in enumerate(s1):
        start = max(0, i - match_distance)
        end = min(i + match_distance + 1, len2)

        for j in range(start, end):
            if not s2_matches[j] and s2[j] == char:
                s1_matches[i] = True
                s2_matches[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(s1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if char != s2[k]:
            transpositions += 1
        k += 1

    return (
        matches / len1
        + matches / len2
        + (matches - transpositions / 2) / matches
    ) / 3


def common_prefix_length(s1: str, s2: str, limit: int = MAX_PREFIX_LENGTH) -> int:
    """Count leading characters shared by both strings, up to ``limit``."""
    length = 0
    for c1, c2 in zip(s1[:limit], s2[:limit]):
        if c1 != c2:
            break
        length += 1
    return length


def jaro_winkler_similarity(s1: str, s2: str) -> float:
    """
    Calculate the Jaro-Winkler similarity between two strings.

    Boosts the Jaro score by 0.1 per shared leading character (at most
    four), so strings that agree at the start rank higher. Comparison is
    case-sensitive; normalize with ``normalize_for_matching`` first.

    Args:
        s1: First string.
        s2: Second string.

    Returns:
        Similarity from 0.0 to 1.0. Exactly 1.0 only for equal strings,
        0.0 whenever either string is empty.

    Example:
        jaro_winkler_similarity("martha", "marhta") -> 0.961
        jaro_winkler_similarity("john", "jon") -> 0.933
    """
    if not s1 or not s2:
        return 0.0

    if s1 == s2:
        return 1.0

    jaro = jaro_similarity(s1, s2)
    prefix = common_prefix_length(s1, s2)

    return jaro + prefix * PREFIX_SCALE * (1 - jaro)
