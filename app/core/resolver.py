# app/core/resolver.py

"""
Reference data resolution.

Decides which reference source a run uses. Tiers are tried in the order
given by the project's match policy and the first tier that yields
records wins:

- petition: project registry -> customer registry -> global registry -> lookup file
- standard: lookup file -> project registry -> customer registry

If no tier yields records the run stops: with the last tier failure when
one occurred, otherwise with NoRegistryConfigured. An empty reference set
is never treated as "nothing to flag".
"""

import logging
from typing import NamedTuple, Optional

from app.models import (
    MatchPolicy,
    Project,
    ReferenceRecord,
    ReferenceScope,
    ReferenceSource,
)
from app.database import get_registry_records
from app.integrations.storage import StorageError, fetch_file
from app.core.exceptions import (
    LookupFileUnavailable,
    NoRegistryConfigured,
    RegistryUnavailable,
    ValidationEngineError,
)
from app.core.records import apply_field_mapping, reference_record_from_row
from app.core.tabular import parse_lookup_file
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class ResolvedReferences(NamedTuple):
    """Reference records for one run plus where they came from."""

    records: tuple[ReferenceRecord, ...]
    source: ReferenceSource


async def resolve_reference_data(project: Project, policy: MatchPolicy) -> ResolvedReferences:
    """
    Load the reference set for a project.

    A tier that fails to load is logged and skipped. If no later tier has
    records, the last failure is raised instead of NoRegistryConfigured.
    """
    last_error: Optional[ValidationEngineError] = None

    for scope in policy.resolution_order:
        try:
            rows, detail = await _load_tier(scope, project)
        except ValidationEngineError as e:
            logger.warning(f"Reference tier '{scope}' failed for project {project.id}: {e}")
            last_error = e
            continue
        except Exception as e:
            logger.warning(f"Reference tier '{scope}' failed for project {project.id}: {e}")
            last_error = RegistryUnavailable(f"Could not load {scope} registry: {e}")
            continue

        records = tuple(
            record
            for record in (reference_record_from_row(row, scope) for row in rows)
            if record is not None
        )

        if records:
            logger.info(
                f"Using {scope} reference data for project {project.id}: {len(records)} records"
            )
            return ResolvedReferences(
                records=records,
                source=ReferenceSource(scope=scope, record_count=len(records), detail=detail),
            )

        logger.info(f"Reference tier '{scope}' empty for project {project.id}")

    if last_error is not None:
        raise last_error

    raise NoRegistryConfigured(
        f"No reference data found for project {project.id} "
        f"(tried {', '.join(policy.resolution_order)})"
    )


async def _load_tier(scope: ReferenceScope, project: Project) -> tuple[list[dict], Optional[str]]:
    """Raw rows for one tier, plus a short description for diagnostics."""

    if scope == "project":
        rows = await get_registry_records(customer_id=project.customer_id, project_id=project.id)
        return rows, None

    if scope == "customer":
        if not project.customer_id:
            return [], None
        return await get_registry_records(customer_id=project.customer_id), None

    if scope == "global":
        if not settings.global_registry_customer_id:
            return [], None
        return await get_registry_records(customer_id=settings.global_registry_customer_id), None

    if scope == "file":
        return await load_lookup_file_rows(project)

    raise ValueError(f"Unknown reference scope: {scope}")


async def load_lookup_file_rows(project: Project) -> tuple[list[dict], Optional[str]]:
    """Fetch and parse the project's configured lookup file, applying its field mapping."""
    config = project.lookup_config
    if not config.file_configured:
        return [], None

    file_name = config.excel_file_name or config.excel_file_url.rsplit("/", 1)[-1].split("?", 1)[0]

    try:
        content = await fetch_file(config.excel_file_url)
    except StorageError as e:
        raise LookupFileUnavailable(str(e)) from e

    rows = parse_lookup_file(content, config.excel_file_url.split("?", 1)[0])
    logger.info(f"Loaded {len(rows)} rows from lookup file {file_name}")

    fields = config.enabled_fields
    return [apply_field_mapping(row, fields) for row in rows], file_name
