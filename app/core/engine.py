# app/core/engine.py

"""
Line-item validation engine.

One run:
1. Load the project and pick its match policy
2. Load line items (from the request or the document's extracted data)
3. Resolve the reference data set
4. Match every line item
5. Optionally authenticate signatures
6. Aggregate, persist and return
"""

import logging
from datetime import datetime
from postgrest.exceptions import APIError

from app.models import MatchPolicy, Project, ValidationRequest, ValidationResponse
from app.database import get_project, get_document_line_items, save_validation_result
from app.core.aggregation import summarize, build_persistence_payload
from app.core.exceptions import ProjectNotFound, ValidationEngineError
from app.core.matching import match_line_items
from app.core.records import line_item_from_extracted, project_from_row
from app.core.resolver import resolve_reference_data
from app.core.signature_auth import authenticate_results
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


async def run_validation(request: ValidationRequest) -> ValidationResponse:
    """
    Validate a document's line items against the project's reference data.

    Configuration problems end the run with `validated: False` and a
    reason. The caller is expected to have checked documentId/projectId.
    """
    start_time = datetime.now()
    document_id = request.document_id
    project_id = request.project_id

    logger.info(f"Validating line items for document {document_id}, project {project_id}")

    # ============================================
    # Project and policy
    # ============================================
    try:
        project = await load_project(project_id)
    except ProjectNotFound as e:
        logger.info(str(e))
        return ValidationResponse.not_validated(e.reason)

    policy = MatchPolicy.for_kind(project.match_policy)

    # ============================================
    # Line items
    # ============================================
    raw_items = request.line_items
    if raw_items is None:
        raw_items = await get_document_line_items(document_id)

    if not raw_items:
        logger.info(f"No line items to validate for document {document_id}")
        return ValidationResponse.not_validated("No line items found")

    items = [line_item_from_extracted(raw) for raw in raw_items if isinstance(raw, dict)]
    if not items:
        return ValidationResponse.not_validated("No line items found")

    # ============================================
    # Reference data (fetched once for the whole run)
    # ============================================
    try:
        references = await resolve_reference_data(project, policy)
    except ValidationEngineError as e:
        logger.warning(f"Validation for document {document_id} not run: {e}")
        return ValidationResponse.not_validated(e.reason)

    # ============================================
    # Match and authenticate
    # ============================================
    results = match_line_items(items, references.records, policy)

    if request.authenticate_signatures:
        if settings.enable_signature_authentication:
            results = await authenticate_results(results, strict_mode=request.strict_mode)
        else:
            logger.info("Signature authentication requested but disabled")

    summary = summarize(results)

    # ============================================
    # Persist
    # ============================================
    if request.persist:
        try:
            payload = build_persistence_payload(summary, references.source)
            await save_validation_result(document_id, payload)
        except Exception as e:
            logger.error(f"Failed to save validation results for document {document_id}: {e}")
            # Continue - persistence failure shouldn't fail the whole request

    duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)
    logger.info(
        f"Validation complete for document {document_id} in {duration_ms}ms: "
        f"{summary.valid_count} valid, {summary.partial_match_count} partial, "
        f"{summary.invalid_count - summary.partial_match_count} not found"
    )

    return ValidationResponse.from_summary(summary, references.source)


async def load_project(project_id: str) -> Project:
    """Load a project row and convert it; raises ProjectNotFound if missing or unreadable."""
    try:
        row = await get_project(project_id)
    except APIError as e:
        logger.warning(f"Project lookup failed for {project_id}: {e.message}")
        raise ProjectNotFound(f"Project {project_id} not found") from e

    if not row:
        raise ProjectNotFound(f"Project {project_id} not found")
    return project_from_row(row)
