# app/models/__init__.py

from app.models.records import (
    LineItem,
    ReferenceRecord,
    ReferenceScope,
    ReferenceSource,
)
from app.models.policy import (
    MatchPolicy,
    PolicyKind,
    STANDARD_POLICY,
    PETITION_POLICY,
)
from app.models.project import (
    LookupConfig,
    LookupField,
    Project,
)
from app.models.validation import (
    FieldResult,
    MatchResult,
    MismatchReason,
    SignatureAuthResult,
    SignatureAuthStatus,
    SignatureStatus,
    ValidationRequest,
    ValidationResponse,
    ValidationSummary,
)

__all__ = [
    # Records
    "LineItem",
    "ReferenceRecord",
    "ReferenceScope",
    "ReferenceSource",
    # Policy
    "MatchPolicy",
    "PolicyKind",
    "STANDARD_POLICY",
    "PETITION_POLICY",
    # Project
    "LookupConfig",
    "LookupField",
    "Project",
    # Validation
    "FieldResult",
    "MatchResult",
    "MismatchReason",
    "SignatureAuthResult",
    "SignatureAuthStatus",
    "SignatureStatus",
    "ValidationRequest",
    "ValidationResponse",
    "ValidationSummary",
]
