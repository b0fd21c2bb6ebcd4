"""Services package - Business logic layer."""
from .bulk_ingest_service import BulkIngestService, select_status_code
from .record_validation import Invalid, Valid, ValidationResult, validate_record

__all__ = [
    "BulkIngestService",
    "Invalid",
    "Valid",
    "ValidationResult",
    "select_status_code",
    "validate_record",
]
