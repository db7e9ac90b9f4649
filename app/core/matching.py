# app/core/matching.py

"""
Core record-linkage matcher.

Scores every line item against the full resolved reference set and keeps
the best candidate per item:
1. Name similarity against every record
2. Records below the policy's candidate cutoff are discarded
3. Survivors get an address score (mean of address, city, zip)
4. Best candidate = highest name score, ties broken by address score
"""

import logging
from typing import Optional, Sequence

from app.models import (
    FieldResult,
    LineItem,
    MatchPolicy,
    MatchResult,
    ReferenceRecord,
    SignatureStatus,
)
from app.core.classification import classify_match
from app.core.normalizers import similarity, is_signature_present

logger = logging.getLogger(__name__)

# (line-item attribute, reference attribute, label in field results)
COMPARED_FIELDS = [
    ("name", "name", "Name"),
    ("address", "address", "Address"),
    ("city", "city", "City"),
    ("zip", "zip", "Zip"),
]


class Candidate:
    """A reference record that survived the name cutoff, with its scores."""

    def __init__(self, record: ReferenceRecord, name_score: float, address_score: float):
        self.record = record
        self.name_score = name_score
        self.address_score = address_score

    def beats(self, other: Optional["Candidate"]) -> bool:
        if other is None:
            return True
        return (self.name_score, self.address_score) > (other.name_score, other.address_score)


def match_line_items(
    items: Sequence[LineItem],
    records: Sequence[ReferenceRecord],
    policy: MatchPolicy,
) -> list[MatchResult]:
    """Match every line item, keeping input order."""
    results = [
        match_line_item(item, records, policy, line_index=index)
        for index, item in enumerate(items)
    ]

    found = sum(1 for r in results if r.found)
    partial = sum(1 for r in results if r.partial_match)
    logger.info(
        f"Matched {len(items)} line items against {len(records)} records: "
        f"{found} found, {partial} partial, {len(items) - found - partial} not found"
    )
    return results


def match_line_item(
    item: LineItem,
    records: Sequence[ReferenceRecord],
    policy: MatchPolicy,
    line_index: int = 0,
) -> MatchResult:
    """Find and classify the best reference record for one line item."""
    best = find_best_candidate(item, records, policy)

    found = False
    partial_match = False
    match_score = 0.0
    mismatch_reason = "none"
    best_match = None

    if best is not None:
        classification = classify_match(best.name_score, best.address_score, policy)
        mismatch_reason = classification.mismatch_reason

        if classification.outcome == "found":
            found = True
            match_score = combined_score(item, best.record)
            best_match = best.record
        elif classification.outcome == "partial":
            partial_match = True
            match_score = best.name_score
            best_match = best.record

    return MatchResult(
        line_index=line_index,
        line_item=item,
        found=found,
        partial_match=partial_match,
        match_score=_clamp(match_score),
        best_match=best_match,
        mismatch_reason=mismatch_reason,
        field_results=compare_fields(item, best.record if best else None, policy),
        signature_status=SignatureStatus(
            present=is_signature_present(item.signature_present),
            value=item.signature_present,
        ),
    )


def find_best_candidate(
    item: LineItem,
    records: Sequence[ReferenceRecord],
    policy: MatchPolicy,
) -> Optional[Candidate]:
    """Single pass over the reference set; first seen wins exact ties."""
    cutoff = min(policy.found_threshold, policy.partial_threshold)
    best: Optional[Candidate] = None

    for record in records:
        name_score = similarity(item.name, record.name)
        if name_score < cutoff:
            continue

        candidate = Candidate(record, name_score, address_score(item, record))
        if candidate.beats(best):
            best = candidate

    return best


def address_score(item: LineItem, record: ReferenceRecord) -> float:
    """Mean similarity of address, city and zip."""
    scores = [
        similarity(item.address, record.address),
        similarity(item.city, record.city),
        similarity(item.zip, record.zip),
    ]
    return sum(scores) / len(scores)


def combined_score(item: LineItem, record: ReferenceRecord) -> float:
    """Mean similarity over all compared fields."""
    scores = [
        similarity(getattr(item, item_attr), getattr(record, record_attr))
        for item_attr, record_attr, _ in COMPARED_FIELDS
    ]
    return sum(scores) / len(scores)


def compare_fields(
    item: LineItem,
    record: Optional[ReferenceRecord],
    policy: MatchPolicy,
) -> list[FieldResult]:
    """Per-field comparison against the best candidate, independent of classification."""
    results: list[FieldResult] = []

    for item_attr, record_attr, label in COMPARED_FIELDS:
        extracted = getattr(item, item_attr)

        if record is None:
            results.append(FieldResult(
                field=label,
                extracted_value=extracted,
                reference_value="",
                matches=False,
                score=0.0,
            ))
            continue

        reference = getattr(record, record_attr)
        score = similarity(extracted, reference)
        matches = score >= policy.field_match_threshold

        results.append(FieldResult(
            field=label,
            extracted_value=extracted,
            reference_value=reference,
            matches=matches,
            score=score,
            suggestion=None if matches else reference,
        ))

    return results


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))
