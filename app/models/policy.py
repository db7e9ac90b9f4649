# app/models/policy.py

"""
Match policies.

A policy bundles the classification thresholds with the order in which
reference data tiers are tried. It is chosen once per project from its
configuration.
"""

from typing import Literal
from pydantic import BaseModel

from app.models.records import ReferenceScope

PolicyKind = Literal["standard", "petition"]


class MatchPolicy(BaseModel):
    """Thresholds and resolution order for one class of project."""

    kind: PolicyKind
    found_threshold: float = 0.7
    partial_threshold: float = 0.7
    address_mismatch_floor: float = 0.4
    field_match_threshold: float = 0.9
    resolution_order: tuple[ReferenceScope, ...]

    class Config:
        frozen = True

    @classmethod
    def for_kind(cls, kind: str | None) -> "MatchPolicy":
        """Look up a policy by kind; unknown or missing kinds get the standard policy."""
        if kind == "petition":
            return PETITION_POLICY
        return STANDARD_POLICY


# Standard projects trust the configured file first
STANDARD_POLICY = MatchPolicy(
    kind="standard",
    partial_threshold=0.7,
    resolution_order=("file", "project", "customer"),
)

# Petitions prefer the indexed registry and accept weaker name matches as partial
PETITION_POLICY = MatchPolicy(
    kind="petition",
    partial_threshold=0.6,
    resolution_order=("project", "customer", "global", "file"),
)
