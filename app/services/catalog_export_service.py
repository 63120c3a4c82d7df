"""
app/services/catalog_export_service.py

Builds the catalog export archive.

Every public method is read-only; no session commits are issued.
"""

from __future__ import annotations

import logging

from app.archive.builder import package_archive, serialize_csv
from app.config import PriceCatalogSettings
from app.domain.price_record import ExportArchive
from app.errors import PipelineError
from app.logging_utils import log_event, log_pipeline_failure
from app.repositories.catalog_repository import CatalogGateway

logger = logging.getLogger(__name__)


class CatalogExportService:
    """
    Query the full catalog, render it as CSV and wrap it in a ZIP archive.

    Parameters
    ----------
    gateway:      Catalog gateway to read from.
    archive_name: Download name without the ``.zip`` extension.
    entry_name:   Name of the CSV entry inside the archive.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        *,
        archive_name: str = "response",
        entry_name: str = "data.csv",
    ) -> None:
        self._gateway = gateway
        self._archive_name = archive_name
        self._entry_name = entry_name

    @classmethod
    def from_settings(
        cls,
        gateway: CatalogGateway,
        settings: PriceCatalogSettings,
    ) -> CatalogExportService:
        return cls(
            gateway,
            archive_name=settings.export_archive_name,
            entry_name=settings.export_entry_name,
        )

    def export(self) -> ExportArchive:
        try:
            entries = self._gateway.query_all()
            csv_bytes = serialize_csv(entries)
            content = package_archive(csv_bytes, self._entry_name)
        except PipelineError as exc:
            log_pipeline_failure(logger, "catalog_export_failed", exc)
            raise

        archive = ExportArchive(
            filename=f"{self._archive_name}.zip",
            content=content,
            rows=len(entries),
        )
        log_event(
            logger,
            logging.INFO,
            "catalog_export_completed",
            rows=archive.rows,
            archive_bytes=len(archive.content),
            entry=self._entry_name,
        )
        return archive
