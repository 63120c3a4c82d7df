"""
app/services/price_ingestion_service.py

Orchestrates one price archive upload:

    1. read the upload (size-capped)
    2. extract the archive into a scratch area and locate the CSV
    3. parse every row; any invalid row rejects the whole upload
    4. insert the batch in one transaction
    5. re-query catalog-wide aggregates after commit

The scratch area is released as soon as parsing finishes, on every exit
path. Nothing is written to the catalog unless steps 2-3 succeed for the
whole file, and step 4 is all-or-nothing.
"""

from __future__ import annotations

import logging

from fastapi import UploadFile

from app.archive.extractor import ArchiveExtractor
from app.config import PriceCatalogSettings
from app.domain.price_record import AggregateSummary, IngestBatch
from app.errors import InputError, PipelineError, UploadTooLargeError
from app.logging_utils import log_event, log_pipeline_failure
from app.repositories.catalog_repository import CatalogGateway
from app.services.aggregation_service import AggregationService
from app.validators.price_row_parser import PriceRowParser

logger = logging.getLogger(__name__)


class PriceIngestionService:
    """
    Coordinates archive extraction, CSV parsing, persistence and aggregation.
    """

    def __init__(
        self,
        *,
        gateway: CatalogGateway,
        max_upload_bytes: int,
        extractor: ArchiveExtractor | None = None,
        parser: PriceRowParser | None = None,
        aggregation: AggregationService | None = None,
    ) -> None:
        self._gateway = gateway
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._extractor = extractor or ArchiveExtractor()
        self._parser = parser or PriceRowParser()
        self._aggregation = aggregation or AggregationService(gateway)

    @classmethod
    def from_settings(
        cls,
        gateway: CatalogGateway,
        settings: PriceCatalogSettings,
    ) -> PriceIngestionService:
        return cls(
            gateway=gateway,
            max_upload_bytes=settings.max_upload_bytes,
            extractor=ArchiveExtractor(
                csv_suffix=settings.csv_suffix,
                scratch_dir=settings.scratch_dir,
            ),
        )

    def ingest_upload(self, upload_file: UploadFile) -> AggregateSummary:
        """
        Read a multipart upload and ingest it.
        """

        filename = upload_file.filename
        try:
            upload_file.file.seek(0)
            payload = upload_file.file.read(self._max_upload_bytes + 1)
        except (OSError, ValueError) as exc:
            error = InputError(f"Unable to read upload: {exc}", stage="upload", filename=filename)
            log_pipeline_failure(logger, "price_ingest_failed", error)
            raise error from exc

        return self.ingest_archive(payload, filename=filename)

    def ingest_archive(
        self,
        archive_bytes: bytes,
        *,
        filename: str | None = None,
    ) -> AggregateSummary:
        """
        Run the full pipeline on raw archive bytes and return catalog statistics.
        """

        try:
            self._check_payload(archive_bytes, filename=filename)
            records = self._extract_records(archive_bytes)
            batch = AggregationService.summarize_batch(records)
            log_event(
                logger,
                logging.INFO,
                "price_batch_parsed",
                filename=filename,
                rows=batch.items_added,
                batch_categories=batch.total_categories,
                batch_price=batch.total_price,
            )

            inserted_ids = self._gateway.ingest(records)
            summary = self._aggregation.summarize(items_added=len(inserted_ids))
        except PipelineError as exc:
            log_pipeline_failure(logger, "price_ingest_failed", exc, filename=filename)
            raise

        log_event(
            logger,
            logging.INFO,
            "price_ingest_completed",
            filename=filename,
            items_added=summary.items_added,
            total_categories=summary.total_categories,
            total_price=summary.total_price,
        )
        return summary

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_payload(self, archive_bytes: bytes, *, filename: str | None) -> None:
        if not archive_bytes:
            raise InputError(
                "Uploaded file is empty.",
                stage="upload",
                public_message="Uploaded file is empty.",
                filename=filename,
            )
        if len(archive_bytes) > self._max_upload_bytes:
            raise UploadTooLargeError(
                f"Upload exceeds {self._max_upload_bytes} bytes.",
                stage="upload",
                filename=filename,
                limit_bytes=self._max_upload_bytes,
            )

    def _extract_records(self, archive_bytes: bytes) -> IngestBatch:
        with self._extractor.extract(archive_bytes) as scratch:
            csv_path = self._extractor.locate(scratch)
            logger.info("Parsing CSV payload entry=%s", csv_path.relative_to(scratch.root))
            return self._parser.parse_file(csv_path)
