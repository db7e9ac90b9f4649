# app/core/records.py

"""
Ingestion boundary.

Upstream extraction, registry tables and lookup files all spell their
columns differently. Everything is converted to typed models here, so the
matcher never sees a raw dict.
"""

from typing import Any, Optional

from app.models import (
    LineItem,
    LookupConfig,
    LookupField,
    Project,
    ReferenceRecord,
    ReferenceScope,
)
from app.core.normalizers import coerce_text, normalize
from app.core.tabular import canonicalize_columns

# Known spellings, checked in order
NAME_KEYS = ["Name", "name", "Printed_Name", "printed_name", "Full_Name", "full_name"]
ADDRESS_KEYS = ["Address", "address", "Street_Address", "street_address"]
CITY_KEYS = ["City", "city"]
ZIP_KEYS = ["Zip", "zip", "Zip_Code", "zip_code", "zipcode"]
SIGNATURE_PRESENT_KEYS = ["Signature_Present", "signature_present", "signaturePresent", "SignaturePresent", "Signature"]
SIGNATURE_IMAGE_KEYS = ["signature_image_url", "signatureImageUrl", "Signature_Image_Url", "signature_image"]
SIGNATURE_REFERENCE_KEYS = ["signature_reference_url", "signatureReferenceUrl", "Signature_Reference_Url", "SignatureReferenceUrl"]


def line_item_from_extracted(data: dict[str, Any]) -> LineItem:
    """Build a LineItem from an extracted row, defaulting missing fields to ""."""
    row = canonicalize_columns(data or {})

    signature_present = _pick_raw(row, SIGNATURE_PRESENT_KEYS)
    image_url = coerce_text(_pick_raw(row, SIGNATURE_IMAGE_KEYS))

    return LineItem(
        name=_pick(row, NAME_KEYS),
        address=_pick(row, ADDRESS_KEYS),
        city=_pick(row, CITY_KEYS),
        zip=_pick(row, ZIP_KEYS),
        signature_present=signature_present if signature_present is not None else "",
        signature_image_url=image_url or None,
    )


def reference_record_from_row(
    row: dict[str, Any],
    scope: ReferenceScope,
) -> Optional[ReferenceRecord]:
    """
    Build a ReferenceRecord from a registry row or lookup file row.

    Returns None for rows without a name; they can never match.
    """
    row = canonicalize_columns(row)

    name = _pick(row, NAME_KEYS)
    if not name:
        return None

    normalized_name = normalize(row.get("name_normalized")) or normalize(name)
    reference_url = coerce_text(_pick_raw(row, SIGNATURE_REFERENCE_KEYS))

    return ReferenceRecord(
        name=name,
        normalized_name=normalized_name,
        address=_pick(row, ADDRESS_KEYS),
        city=_pick(row, CITY_KEYS),
        zip=_pick(row, ZIP_KEYS),
        signature_reference_url=reference_url or None,
        scope=scope,
    )


def apply_field_mapping(row: dict[str, Any], fields: list[LookupField]) -> dict[str, Any]:
    """Copy lookup-file columns onto the line-item field names they are mapped to."""
    if not fields:
        return row

    mapped = dict(row)
    for field in fields:
        if field.ecm_field in row:
            mapped[field.wisdm_field] = row[field.ecm_field]
    return mapped


def project_from_row(row: dict[str, Any]) -> Project:
    """Build a Project from a `projects` row."""
    metadata = row.get("metadata") or {}
    lookup = metadata.get("validation_lookup_config") or {}

    return Project(
        id=str(row["id"]),
        name=row.get("name") or "",
        customer_id=row.get("customer_id"),
        match_policy="petition" if metadata.get("match_policy") == "petition" else "standard",
        lookup_config=LookupConfig.model_validate(lookup),
    )


def _pick_raw(row: dict[str, Any], keys: list[str]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _pick(row: dict[str, Any], keys: list[str]) -> str:
    return coerce_text(_pick_raw(row, keys))
