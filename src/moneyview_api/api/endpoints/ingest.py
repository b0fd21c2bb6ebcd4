"""
Partner Bulk Ingestion Endpoint.

Exposed routes:
  POST /cashKuber  - Insert a batch of partner leads, skipping invalid and duplicate records

The whole router sits behind the ``api-key`` shared-secret check. The body is
decoded by a dependency that runs after that check, so an unauthenticated
caller gets 401 whatever it sent.
"""
from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from ...core.security import require_api_key
from ...db.session import DbSession
from ...repositories.moneyview_repository import MoneyviewRepository
from ...schemas.ingest import BulkIngestReport, IncomingRecord
from ...services.bulk_ingest_service import BulkIngestService, select_status_code

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])

_records_adapter = TypeAdapter(list[IncomingRecord])


async def _read_records(request: Request) -> list[IncomingRecord]:
    """Decode the JSON array body into records.

    Failures are raised as ``RequestValidationError`` so they render through
    the same 422 envelope as any other request validation error.
    """
    try:
        return _records_adapter.validate_json(await request.body())
    except ValidationError as exc:
        raise RequestValidationError(
            [
                {**err, "loc": ("body", *err["loc"])}
                for err in exc.errors(include_url=False)
            ]
        ) from exc


def _get_ingest_service(db: DbSession) -> BulkIngestService:
    """DI factory - returns a BulkIngestService bound to the request session."""
    return BulkIngestService(MoneyviewRepository(db))


RecordsDep = Annotated[list[IncomingRecord], Depends(_read_records)]
IngestServiceDep = Annotated[BulkIngestService, Depends(_get_ingest_service)]


@router.post(
    "/cashKuber",
    response_model=BulkIngestReport,
    summary="Bulk insert partner leads",
    description="""
Insert a JSON array of lead records into the ``moneyview`` table.

Records are processed in order. A record is **skipped** when:
- `partnerId` is missing or blank (`Missing PartnerId`)
- both `phone` and `pan` are missing or blank (`Missing Phone and PAN`)
- a stored record already has the same phone or PAN (`Duplicate phone or PAN`)
- the insert wrote no row (`Insert failed`)

Field names are matched case-insensitively. Records written before a later
failure in the same batch stay written.
    """,
    responses={
        200: {"description": "Every record inserted (or empty batch)"},
        207: {"model": BulkIngestReport, "description": "Some records inserted, some skipped"},
        401: {"description": "Missing or invalid api-key header"},
        409: {"model": BulkIngestReport, "description": "No record inserted; all skipped"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {"type": "array", "items": IncomingRecord.model_json_schema()}
                }
            },
        }
    },
)
async def ingest_partner_records(
    records: RecordsDep,
    service: IngestServiceDep,
) -> JSONResponse:
    """Run the ingest pipeline and pick the status code from the outcome mix."""
    report = await service.ingest(records)
    status_code = select_status_code(report)

    logger.info(
        "cashkuber_batch_processed",
        status_code=status_code,
        inserted=report.inserted_count,
        skipped=report.skipped_count,
    )
    return JSONResponse(status_code=status_code, content=report.to_response_body())
