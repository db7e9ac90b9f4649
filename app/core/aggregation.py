# app/core/aggregation.py

"""
Result aggregation for a validation run.

Counts per-item outcomes and builds the document update that records the
run. Partial matches count as invalid but are also tallied on their own.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from app.models import MatchResult, ReferenceSource, ValidationSummary


def summarize(results: Sequence[MatchResult]) -> ValidationSummary:
    """Build the run summary; valid + invalid always equals the item count."""
    valid_count = 0
    invalid_count = 0
    partial_match_count = 0
    authenticated_count = 0
    suspicious_count = 0

    for result in results:
        if result.found:
            valid_count += 1
        else:
            invalid_count += 1
            if result.partial_match:
                partial_match_count += 1

        auth = result.signature_authentication
        if auth is not None:
            if auth.status == "authenticated":
                authenticated_count += 1
            elif auth.status == "suspicious":
                suspicious_count += 1

    return ValidationSummary(
        total_items=len(results),
        valid_count=valid_count,
        invalid_count=invalid_count,
        partial_match_count=partial_match_count,
        authenticated_count=authenticated_count,
        suspicious_count=suspicious_count,
        results=list(results),
    )


def build_persistence_payload(
    summary: ValidationSummary,
    source: Optional[ReferenceSource] = None,
    validated_at: Optional[datetime] = None,
) -> dict:
    """
    Build the `documents` update for a finished run.

    The whole lookupValidation block is replaced, so only the latest run
    is kept.
    """
    if validated_at is None:
        validated_at = datetime.now(timezone.utc)

    lookup_validation = {
        "validated": True,
        "validatedAt": validated_at.isoformat(),
        "source": source.model_dump(by_alias=True) if source else None,
        **summary.model_dump(mode="json", by_alias=True),
    }

    return {
        "validation_suggestions": {"lookupValidation": lookup_validation},
        "needs_review": summary.needs_review,
    }
