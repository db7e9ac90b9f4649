# app/routers/validation.py

"""
Line-item validation routes.

The main endpoint that runs the lookup validation engine.
"""

import logging
from fastapi import APIRouter, HTTPException

from app.core.engine import run_validation
from app.models import ValidationRequest, ValidationResponse

router = APIRouter()
logger = logging.getLogger(__name__)


# ============================================
# Main Validation Endpoint
# ============================================

@router.post("/validate-line-items", response_model=ValidationResponse)
async def validate_line_items(request: ValidationRequest):
    """
    Validate a document's line items against the project's reference data.

    1. Resolves the reference registry or lookup file
    2. Scores every line item
    3. Optionally authenticates signatures
    4. Saves the results on the document
    """
    if not request.document_id or not request.project_id:
        raise HTTPException(
            status_code=400,
            detail="Missing documentId or projectId"
        )

    try:
        return await run_validation(request)
    except Exception as e:
        logger.exception(f"Line item validation failed for document {request.document_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Line item validation failed: {str(e)}"
        )
