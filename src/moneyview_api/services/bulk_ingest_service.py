"""Bulk ingestion service.

Runs the validate → dedup-check → insert pipeline over a partner batch, one
record at a time in submission order, and builds the outcome report.

Per-record problems (missing fields, duplicates, zero-row inserts) become
skipped entries and processing continues. Anything else, such as the
database being unreachable, propagates to the caller.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog

from ..repositories.moneyview_repository import MoneyviewRepository
from ..schemas.ingest import (
    BulkIngestReport,
    IncomingRecord,
    InsertedRecord,
    SkippedRecord,
    SkipReason,
)
from .record_validation import Invalid, validate_record

log = structlog.get_logger(__name__)

CREATED_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def select_status_code(report: BulkIngestReport) -> int:
    """HTTP status for an authenticated batch.

    - some inserted and some skipped → 207 Multi-Status
    - nothing inserted but something skipped → 409 Conflict
    - otherwise (all inserted, or an empty batch) → 200 OK
    """
    if report.inserted_count and report.skipped_count:
        return 207
    if report.skipped_count:
        return 409
    return 200


class BulkIngestService:
    """Sequential per-record ingestion into the ``moneyview`` table."""

    def __init__(
        self,
        repository: MoneyviewRepository,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self._clock = clock

    async def ingest(self, records: Sequence[IncomingRecord]) -> BulkIngestReport:
        inserted: list[InsertedRecord] = []
        skipped: list[SkippedRecord] = []

        for record in records:
            outcome = await self._ingest_one(record)
            if isinstance(outcome, InsertedRecord):
                inserted.append(outcome)
            else:
                skipped.append(outcome)

        report = BulkIngestReport.from_outcomes(inserted, skipped)
        log.info(
            "bulk_ingest_completed",
            received=len(records),
            inserted=report.inserted_count,
            skipped=report.skipped_count,
        )
        return report

    async def _ingest_one(self, record: IncomingRecord) -> InsertedRecord | SkippedRecord:
        verdict = validate_record(record)
        if isinstance(verdict, Invalid):
            log.debug("record_skipped", reason=verdict.reason.value, phone=record.phone)
            return SkippedRecord.for_record(record, verdict.reason)

        existing = await self.repository.count_matching(phone=record.phone, pan=record.pan)
        if existing > 0:
            log.debug("record_duplicate", phone=record.phone, pan=record.pan)
            return SkippedRecord.for_record(record, SkipReason.DUPLICATE)

        rows = await self.repository.insert(record.to_columns())
        if rows == 0:
            log.warning("record_insert_failed", phone=record.phone)
            return SkippedRecord.for_record(record, SkipReason.INSERT_FAILED)

        log.info("record_inserted", **record.to_columns())
        return InsertedRecord.for_record(
            record,
            created_date=self._clock().strftime(CREATED_DATE_FORMAT),
        )
