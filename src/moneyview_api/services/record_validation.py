"""Pre-database validation of incoming partner records.

Rules are checked in a fixed priority order and the first failing rule
wins. Validation never touches the database, so the repository layer stays
free of validation branching.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..schemas.ingest import IncomingRecord, SkipReason


@dataclass(frozen=True)
class Valid:
    """The record may proceed to the duplicate check."""


@dataclass(frozen=True)
class Invalid:
    """The record must be skipped for ``reason``."""

    reason: SkipReason


ValidationResult = Valid | Invalid


def validate_record(record: IncomingRecord) -> ValidationResult:
    """Apply the required-field rules to one record."""
    if record.partner_id is None:
        return Invalid(SkipReason.MISSING_PARTNER_ID)
    if record.phone is None and record.pan is None:
        return Invalid(SkipReason.MISSING_PHONE_AND_PAN)
    return Valid()
