from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.dependencies import get_catalog_gateway
from app.config import get_logging_settings, get_price_catalog_settings
from app.errors import StorageError
from app.repositories.catalog_repository import CatalogGateway


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any database connection is initialised. Raises RuntimeError
    listing every problem so the operator can fix all of them in one restart.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    database_url = os.getenv("DATABASE_URL", "").strip()
    cloud_database_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not (database_url or cloud_database_url or local_database_url):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    max_upload = os.getenv("PRICES_MAX_UPLOAD_BYTES")
    if max_upload is not None and not max_upload.strip().isdigit():
        errors.append(f"PRICES_MAX_UPLOAD_BYTES='{max_upload}' is not a positive integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = get_logging_settings().level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _resolve_gateway(application: FastAPI) -> CatalogGateway:
    provider = application.dependency_overrides.get(get_catalog_gateway, get_catalog_gateway)
    return provider()


def _check_db(gateway: CatalogGateway) -> None:
    """Run SELECT 1 against the catalog store. Raises RuntimeError if unreachable."""
    try:
        gateway.check_connection()
    except StorageError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema(gateway: CatalogGateway) -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate; the operator runs ``alembic upgrade head``.
    """
    missing = gateway.missing_tables()
    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema on boot."""
    gateway = _resolve_gateway(application)
    _check_db(gateway)
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema(gateway)
    logging.getLogger(__name__).info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    settings = get_price_catalog_settings()
    application = FastAPI(
        title="Price Catalog API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import prices_router

    application.include_router(prices_router, prefix=settings.api_path)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
