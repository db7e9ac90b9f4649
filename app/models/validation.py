# app/models/validation.py

from typing import Any, Optional, Literal
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.models.records import LineItem, ReferenceRecord, ReferenceSource


# ============================================
# Signature Authentication
# ============================================

SignatureAuthStatus = Literal[
    "authenticated",
    "review_needed",
    "suspicious",
    "no_reference",
    "no_signature_image",
    "error",
    "ai_error",
    "parse_error",
    "no_api_key",
    "timeout",
]


class SignatureAuthResult(BaseModel):
    """Outcome of comparing a captured signature with the reference image."""

    similarity_score: float = Field(default=0.0, ge=0, le=1)
    status: SignatureAuthStatus
    analysis: str = ""
    recommendation: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


# ============================================
# Match Result
# ============================================

MismatchReason = Literal["none", "name_mismatch", "address_mismatch"]


class FieldResult(BaseModel):
    """Comparison of one field against the best candidate."""

    field: str
    extracted_value: str
    reference_value: str
    matches: bool
    score: float = Field(ge=0, le=1)
    suggestion: Optional[str] = None  # Reference value when the field does not match

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class SignatureStatus(BaseModel):
    """Whether extraction saw a signature on the line."""

    present: bool
    value: Any = ""

    class Config:
        frozen = True


class MatchResult(BaseModel):
    """Per-line-item validation outcome."""

    line_index: int
    line_item: LineItem
    found: bool = False
    partial_match: bool = False
    match_score: float = Field(default=0.0, ge=0, le=1)
    best_match: Optional[ReferenceRecord] = None
    mismatch_reason: MismatchReason = "none"
    field_results: list[FieldResult] = Field(default_factory=list)
    signature_authentication: Optional[SignatureAuthResult] = None
    signature_status: SignatureStatus

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True

    @property
    def is_valid(self) -> bool:
        return self.found


# ============================================
# Summary
# ============================================

class ValidationSummary(BaseModel):
    """Aggregate over all line items in one run."""

    total_items: int = Field(ge=0)
    valid_count: int = Field(ge=0)
    invalid_count: int = Field(ge=0)
    partial_match_count: int = Field(ge=0)
    authenticated_count: int = Field(ge=0)
    suspicious_count: int = Field(ge=0)
    results: list[MatchResult] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def needs_review(self) -> bool:
        return self.invalid_count > 0 or self.suspicious_count > 0


# ============================================
# API Request / Response
# ============================================

class ValidationRequest(BaseModel):
    """Request to validate a document's line items."""

    document_id: Optional[str] = None
    project_id: Optional[str] = None
    line_items: Optional[list[dict]] = None
    authenticate_signatures: bool = False
    strict_mode: bool = False
    persist: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ValidationResponse(BaseModel):
    """Result of a validation run."""

    validated: bool
    reason: Optional[str] = None
    source: Optional[ReferenceSource] = None
    total_items: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    partial_match_count: int = 0
    authenticated_count: int = 0
    suspicious_count: int = 0
    needs_review: bool = False
    results: list[MatchResult] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def not_validated(cls, reason: str) -> "ValidationResponse":
        return cls(validated=False, reason=reason)

    @classmethod
    def from_summary(
        cls,
        summary: ValidationSummary,
        source: Optional[ReferenceSource] = None,
    ) -> "ValidationResponse":
        return cls(
            validated=True,
            source=source,
            total_items=summary.total_items,
            valid_count=summary.valid_count,
            invalid_count=summary.invalid_count,
            partial_match_count=summary.partial_match_count,
            authenticated_count=summary.authenticated_count,
            suspicious_count=summary.suspicious_count,
            needs_review=summary.needs_review,
            results=summary.results,
        )
