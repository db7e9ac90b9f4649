# app/core/normalizers.py

"""
Text normalization and similarity scoring for record linkage.

Ensures consistent comparison regardless of case, spacing or source type.
"""

from typing import Any
import re

SIGNATURE_PRESENT_VALUES = {"yes", "y", "true", "1", "x", "signed"}


def normalize(s: Any) -> str:
    """
    Normalize text for comparison.

    - Lowercase
    - Trim
    - Collapse whitespace
    """
    if s is None:
        return ""

    s = str(s).lower()
    s = re.sub(r'\s+', ' ', s).strip()
    return s


def similarity(a: Any, b: Any) -> float:
    """
    Calculate similarity between two strings.
    Returns 0.0 to 1.0.

    1. Identical after normalization -> 1.0
    2. Either side empty -> 0.0
    3. One contains the other -> 0.9
    4. Word-set overlap against the larger word set
    """
    s1 = normalize(a)
    s2 = normalize(b)

    if s1 and s1 == s2:
        return 1.0

    if not s1 or not s2:
        return 0.0

    # Coarse containment shortcut; thresholds are calibrated against it
    if s1 in s2 or s2 in s1:
        return 0.9

    words1 = set(s1.split(" "))
    words2 = set(s2.split(" "))

    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / max(len(words1), len(words2))


def coerce_text(value: Any) -> str:
    """
    Convert a raw cell or JSON value to a trimmed string.

    Handles:
    - None
    - Integral floats from spreadsheets (12345.0 -> "12345")
    - Booleans and other scalars
    """
    if value is None:
        return ""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))

    return str(value).strip()


def is_signature_present(value: Any) -> bool:
    """Interpret a boolean-ish signature flag from extraction."""
    if isinstance(value, bool):
        return value

    return normalize(value) in SIGNATURE_PRESENT_VALUES
