# app/models/records.py

from typing import Any, Optional, Literal
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

ReferenceScope = Literal["project", "customer", "global", "file"]


class LineItem(BaseModel):
    """One extracted row from a document, awaiting validation."""

    name: str = ""
    address: str = ""
    city: str = ""
    zip: str = ""
    signature_present: Any = ""  # Raw value from extraction ("Yes", True, ...)
    signature_image_url: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class ReferenceRecord(BaseModel):
    """One authoritative record from a registry or lookup file."""

    name: str
    normalized_name: str
    address: str = ""
    city: str = ""
    zip: str = ""
    signature_reference_url: Optional[str] = None
    scope: ReferenceScope

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class ReferenceSource(BaseModel):
    """Where the reference data for a run came from."""

    scope: ReferenceScope
    record_count: int = Field(ge=0)
    detail: Optional[str] = None  # e.g. lookup file name

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True
