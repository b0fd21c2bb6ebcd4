"""Bulk ingestion schemas.

Pydantic models for the partner payload accepted by ``POST /cashKuber`` and
the per-record outcome report it returns.

Partners send keys in whatever casing their platform produces
(``PartnerId``, ``partnerId``, ``partner_id``), so request keys are matched
case-insensitively. Responses use camelCase keys.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _key_token(key: str) -> str:
    """Reduce a JSON key to a casing- and separator-insensitive token."""
    return key.replace("_", "").replace("-", "").lower()


class SkipReason(str, Enum):
    """Why a record was not inserted."""

    MISSING_PARTNER_ID = "Missing PartnerId"
    MISSING_PHONE_AND_PAN = "Missing Phone and PAN"
    DUPLICATE = "Duplicate phone or PAN"
    INSERT_FAILED = "Insert failed"


class IncomingRecord(BaseModel):
    """A single lead profile as submitted by a partner.

    Every field is optional at parse time. A missing ``partner_id`` or a
    record with neither phone nor PAN is reported as skipped by the ingest
    pipeline rather than rejected here. Blank values are normalised to
    ``None`` so they behave as SQL NULL downstream.
    """

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )

    name: str | None = Field(default=None, description="Full name")
    phone: str | None = Field(default=None, description="Mobile number (dedup key)")
    email: str | None = Field(default=None, description="Email address")
    employment: str | None = Field(default=None, description="Employment type")
    pan: str | None = Field(default=None, description="PAN / national tax ID (dedup key)")
    pincode: str | None = Field(default=None, description="Postal code")
    income: str | None = Field(default=None, description="Declared income")
    city: str | None = Field(default=None, description="City")
    state: str | None = Field(default=None, description="State")
    dob: str | None = Field(default=None, description="Date of birth")
    gender: str | None = Field(default=None, description="Gender")
    partner_id: str | None = Field(default=None, description="Submitting partner identifier")

    @model_validator(mode="before")
    @classmethod
    def match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = {_key_token(name): name for name in cls.model_fields}
        matched: dict[str, Any] = {}
        for key, value in data.items():
            field_name = lookup.get(_key_token(str(key)))
            if field_name is not None:
                matched[field_name] = value
        return matched

    @field_validator("*", mode="after")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v or None

    def to_columns(self) -> dict[str, str | None]:
        """Column values for the ``moneyview`` insert."""
        return self.model_dump()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InsertedRecord(_CamelModel):
    """Outcome entry for a record that was written."""

    name: str | None = None
    phone: str | None = None
    pan: str | None = None
    status: str = "Inserted"
    created_date: str = Field(description="Local insertion time, YYYY-MM-DDTHH:MM:SS")

    @classmethod
    def for_record(cls, record: IncomingRecord, created_date: str) -> InsertedRecord:
        return cls(
            name=record.name,
            phone=record.phone,
            pan=record.pan,
            status="Inserted",
            created_date=created_date,
        )


class SkippedRecord(_CamelModel):
    """Outcome entry for a record that was not written.

    Records skipped for lacking both phone and PAN echo only the name; all
    other skips echo name, phone and PAN.
    """

    name: str | None = None
    phone: str | None = None
    pan: str | None = None
    reason: SkipReason

    @classmethod
    def for_record(cls, record: IncomingRecord, reason: SkipReason) -> SkippedRecord:
        if reason is SkipReason.MISSING_PHONE_AND_PAN:
            return cls(name=record.name, reason=reason)
        return cls(name=record.name, phone=record.phone, pan=record.pan, reason=reason)


class BulkIngestReport(_CamelModel):
    """Aggregate outcome of one ``POST /cashKuber`` request."""

    inserted_count: int = 0
    skipped_count: int = 0
    inserted: list[InsertedRecord] = Field(default_factory=list)
    skipped: list[SkippedRecord] = Field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        inserted: list[InsertedRecord],
        skipped: list[SkippedRecord],
    ) -> BulkIngestReport:
        return cls(
            inserted_count=len(inserted),
            skipped_count=len(skipped),
            inserted=inserted,
            skipped=skipped,
        )

    def to_response_body(self) -> dict[str, Any]:
        """JSON body with camelCase keys; fields never set are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
