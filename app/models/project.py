# app/models/project.py

from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.models.policy import PolicyKind


class LookupField(BaseModel):
    """Maps an extracted field onto a column of the lookup file."""

    wisdm_field: str  # Field name on the line item
    ecm_field: str    # Column name in the lookup file
    lookup_enabled: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LookupConfig(BaseModel):
    """Per-project lookup file settings (projects.metadata.validation_lookup_config)."""

    enabled: bool = False
    excel_file_url: Optional[str] = None
    excel_file_name: Optional[str] = None
    system: Optional[str] = None
    lookup_fields: list[LookupField] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def file_configured(self) -> bool:
        return self.enabled and bool(self.excel_file_url)

    @property
    def enabled_fields(self) -> list[LookupField]:
        return [f for f in self.lookup_fields if f.lookup_enabled]


class Project(BaseModel):
    """The slice of a project row the validation engine needs."""

    id: str
    name: str = ""
    customer_id: Optional[str] = None
    match_policy: PolicyKind = "standard"
    lookup_config: LookupConfig = Field(default_factory=LookupConfig)
