"""
app/domain package marker.
"""

from app.domain.price_record import (
    AggregateSummary,
    CatalogEntry,
    ExportArchive,
    IngestBatch,
    PriceRecord,
)

__all__ = [
    "AggregateSummary",
    "CatalogEntry",
    "ExportArchive",
    "IngestBatch",
    "PriceRecord",
]
