"""
app/api/routers/prices.py

Price catalog endpoints, mounted at the configured resource path
(default ``/api/v0/prices``).

POST  multipart ``file`` field holding a ZIP with one CSV payload.
      → JSON {"total_items", "total_categories", "total_price"}
GET   export of the whole catalog.
      → ZIP stream, Content-Type: application/zip,
        Content-Disposition: attachment; filename=<name>.zip

Other methods receive 405 from FastAPI routing. All pipeline work lives in
the services; the router only handles HTTP plumbing and error mapping.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from fastapi.responses import Response

from app.api.dependencies import (
    get_archive_upload,
    get_catalog_export_service,
    get_price_ingestion_service,
)
from app.errors import PipelineError
from app.schemas.prices import ErrorResponse, PriceIngestResponse
from app.services.catalog_export_service import CatalogExportService
from app.services.price_ingestion_service import PriceIngestionService

router = APIRouter(tags=["prices"])

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _to_http_exception(exc: PipelineError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.public_message)


@router.post("", response_model=PriceIngestResponse, responses=_ERROR_RESPONSES)
def upload_prices(
    file: UploadFile = Depends(get_archive_upload),
    service: PriceIngestionService = Depends(get_price_ingestion_service),
) -> PriceIngestResponse:
    """
    Ingest one archived CSV of price records.
    """

    try:
        summary = service.ingest_upload(file)
    except PipelineError as exc:
        raise _to_http_exception(exc) from exc
    finally:
        file.file.close()

    return PriceIngestResponse.from_summary(summary)


@router.get(
    "",
    response_class=Response,
    responses={
        200: {"content": {"application/zip": {}}, "description": "Catalog export archive."},
        500: {"model": ErrorResponse},
    },
)
def export_prices(
    service: CatalogExportService = Depends(get_catalog_export_service),
) -> Response:
    """
    Export the whole catalog as a zipped CSV.
    """

    try:
        archive = service.export()
    except PipelineError as exc:
        raise _to_http_exception(exc) from exc

    return Response(
        content=archive.content,
        media_type="application/zip",
        headers={
            "Content-Disposition": f"attachment; filename={archive.filename}",
            "X-Row-Count": str(archive.rows),
        },
    )
