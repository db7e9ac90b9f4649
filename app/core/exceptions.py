# app/core/exceptions.py

"""
Error types raised by the validation engine.

Configuration errors end a run with `validated: false`; signature service
errors are caught per line item and never leave the authenticator.
"""


class ValidationEngineError(Exception):
    """Base class for run-terminating validation errors."""

    reason: str = "Validation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.reason)


class ProjectNotFound(ValidationEngineError):
    reason = "Project not found"


class NoRegistryConfigured(ValidationEngineError):
    reason = "No registry configured"


class LookupFileError(ValidationEngineError):
    reason = "Could not read lookup file"


class LookupFileUnavailable(LookupFileError):
    reason = "Could not fetch lookup file"


class RegistryUnavailable(ValidationEngineError):
    reason = "Could not load registry"


# ============================================
# Signature comparison service
# ============================================

class SignatureServiceError(Exception):
    """Base class for comparison service failures."""


class SignatureServiceUnavailable(SignatureServiceError):
    """The service is unreachable, rate-limited or returned an error."""


class SignatureResponseParseError(SignatureServiceError):
    """The service replied, but not with a usable JSON payload."""
