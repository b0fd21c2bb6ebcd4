"""API endpoints package."""

from . import health, ingest

__all__ = [
	"health",
	"ingest",
]
