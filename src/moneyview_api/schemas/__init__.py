"""Schemas package - Pydantic request and response models."""
from .ingest import (
    BulkIngestReport,
    IncomingRecord,
    InsertedRecord,
    SkippedRecord,
    SkipReason,
)

__all__ = [
    "BulkIngestReport",
    "IncomingRecord",
    "InsertedRecord",
    "SkippedRecord",
    "SkipReason",
]
