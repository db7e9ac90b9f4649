# app/core/signature_auth.py

"""
Signature authentication for matched line items.

Corroborates a match by comparing the captured signature image with the
reference signature on the best-matching record:
- no best match            -> not invoked
- no reference image       -> no_reference
- no captured image        -> no_signature_image
- both images              -> comparison service, score mapped to a status

Failures are recorded on the item and never abort the run. Items run
through a bounded worker pool under one deadline for the whole phase.
"""

import asyncio
import logging
from typing import Sequence

from app.models import LineItem, MatchResult, ReferenceRecord, SignatureAuthResult
from app.integrations import claude, storage
from app.core.exceptions import (
    SignatureResponseParseError,
    SignatureServiceUnavailable,
)
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Thresholds
AUTHENTICATED_THRESHOLD = 0.8
REVIEW_THRESHOLD = 0.5


async def authenticate_results(
    results: Sequence[MatchResult],
    strict_mode: bool = False,
    timeout_seconds: float | None = None,
    concurrency: int | None = None,
) -> list[MatchResult]:
    """
    Attach signature authentication to every result that has a best match.

    Output order matches input order. Items still running when the
    deadline passes are cancelled and marked `timeout`; finished items and
    all match data are kept.
    """
    if timeout_seconds is None:
        timeout_seconds = settings.signature_auth_timeout_seconds
    if concurrency is None:
        concurrency = settings.signature_auth_concurrency

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(result: MatchResult) -> SignatureAuthResult:
        async with semaphore:
            return await authenticate_signature(
                result.line_item, result.best_match, strict_mode=strict_mode
            )

    tasks: dict[int, asyncio.Task] = {
        index: asyncio.create_task(_run(result))
        for index, result in enumerate(results)
        if result.best_match is not None
    }

    if not tasks:
        return list(results)

    logger.info(f"Authenticating signatures for {len(tasks)} matched line items")

    _, pending = await asyncio.wait(tasks.values(), timeout=timeout_seconds)
    for task in pending:
        task.cancel()
    if pending:
        logger.warning(f"Signature authentication deadline reached, {len(pending)} items timed out")
        await asyncio.gather(*pending, return_exceptions=True)

    authenticated: list[MatchResult] = []
    for index, result in enumerate(results):
        task = tasks.get(index)
        if task is None:
            authenticated.append(result)
            continue

        if task in pending:
            auth = SignatureAuthResult(
                status="timeout",
                analysis="Signature authentication did not finish before the deadline",
            )
        else:
            auth = task.result()

        authenticated.append(result.model_copy(update={"signature_authentication": auth}))

    return authenticated


async def authenticate_signature(
    item: LineItem,
    record: ReferenceRecord,
    strict_mode: bool = False,
) -> SignatureAuthResult:
    """Compare one line item's signature with its best match's reference signature."""

    if not record.signature_reference_url:
        return SignatureAuthResult(
            status="no_reference",
            analysis="No reference signature on file for the matched record",
        )

    if not item.signature_image_url:
        return SignatureAuthResult(
            status="no_signature_image",
            analysis="No signature image was captured for this line",
        )

    if not claude.is_configured():
        return SignatureAuthResult(
            status="no_api_key",
            analysis="Signature comparison service is not configured",
        )

    # ============================================
    # Load both images
    # ============================================
    try:
        signature_image = await storage.fetch_image(item.signature_image_url)
        reference_image = await storage.fetch_image(record.signature_reference_url)
    except storage.StorageError as e:
        logger.warning(f"Signature image fetch failed: {e}")
        return SignatureAuthResult(status="error", analysis=str(e))

    # ============================================
    # Compare
    # ============================================
    try:
        verdict = await claude.compare_signatures(
            signature_image, reference_image, strict_mode=strict_mode
        )
    except SignatureServiceUnavailable as e:
        logger.warning(f"Signature comparison failed: {e}")
        return SignatureAuthResult(status="ai_error", analysis=str(e))
    except SignatureResponseParseError as e:
        logger.warning(f"Signature comparison reply unparseable: {e}")
        return SignatureAuthResult(status="parse_error", analysis=str(e))
    except Exception as e:
        logger.exception("Unexpected signature comparison failure")
        return SignatureAuthResult(status="error", analysis=str(e))

    score = verdict["similarity_score"]

    return SignatureAuthResult(
        similarity_score=score,
        status=status_for_score(score),
        analysis=verdict.get("analysis", ""),
        recommendation=verdict.get("recommendation"),
    )


def status_for_score(score: float) -> str:
    """Map a similarity score to an authentication status."""
    if score >= AUTHENTICATED_THRESHOLD:
        return "authenticated"
    elif score >= REVIEW_THRESHOLD:
        return "review_needed"
    else:
        return "suspicious"
