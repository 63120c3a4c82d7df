"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and service wiring.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status

from app.config import PriceCatalogSettings, get_price_catalog_settings
from app.repositories.catalog_repository import CatalogGateway
from app.services.catalog_export_service import CatalogExportService
from app.services.price_ingestion_service import PriceIngestionService
from db.session import get_session_factory


def get_archive_upload(file: UploadFile | None = File(default=None)) -> UploadFile:
    """
    Require the multipart ``file`` field.
    """

    if file is None or not (file.filename or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to retrieve file.",
        )
    return file


def get_catalog_gateway() -> CatalogGateway:
    """
    Gateway bound to the process session factory. Overridden in tests.
    """

    return CatalogGateway(get_session_factory())


def get_price_ingestion_service(
    gateway: CatalogGateway = Depends(get_catalog_gateway),
    settings: PriceCatalogSettings = Depends(get_price_catalog_settings),
) -> PriceIngestionService:
    return PriceIngestionService.from_settings(gateway, settings)


def get_catalog_export_service(
    gateway: CatalogGateway = Depends(get_catalog_gateway),
    settings: PriceCatalogSettings = Depends(get_price_catalog_settings),
) -> CatalogExportService:
    return CatalogExportService.from_settings(gateway, settings)
