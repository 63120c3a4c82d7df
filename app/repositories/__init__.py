"""
app/repositories package marker.
"""

from app.repositories.catalog_repository import CatalogGateway, IngestTransaction

__all__ = [
    "CatalogGateway",
    "IngestTransaction",
]
