"""
app/services package marker.
"""

from app.services.aggregation_service import AggregationService, distinct_count
from app.services.catalog_export_service import CatalogExportService
from app.services.price_ingestion_service import PriceIngestionService

__all__ = [
    "AggregationService",
    "CatalogExportService",
    "PriceIngestionService",
    "distinct_count",
]
