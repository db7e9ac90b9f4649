# app/core/classification.py

"""
Match classification for line-item validation.

Turns the best candidate's name and address scores into found / partial /
invalid, using the thresholds of the project's match policy.
"""

from typing import Literal, NamedTuple

from app.models import MatchPolicy, MismatchReason

MatchOutcome = Literal["found", "partial", "invalid"]


class Classification(NamedTuple):
    outcome: MatchOutcome
    mismatch_reason: MismatchReason


def classify_match(
    name_score: float,
    address_score: float,
    policy: MatchPolicy,
) -> Classification:
    """
    Classify a best candidate.

    - found:   name and address both clear the found threshold
    - partial: name clears the policy's partial threshold
    - invalid: anything else

    On standard projects the partial threshold equals the found threshold,
    so a candidate is never invalid while its name clears 0.7. That is the
    observed behavior and is kept as-is.
    """

    # ============================================
    # Full match
    # ============================================
    if name_score >= policy.found_threshold and address_score >= policy.found_threshold:
        return Classification("found", "none")

    # ============================================
    # Partial match
    # ============================================
    if name_score >= policy.partial_threshold:
        if address_score >= policy.address_mismatch_floor:
            return Classification("partial", "address_mismatch")
        return Classification("partial", "name_mismatch")

    # ============================================
    # No match
    # ============================================
    return Classification("invalid", "none")
