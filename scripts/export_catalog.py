"""
Write the catalog export archive to a local file.

Usage:
    python -m scripts.export_catalog --output catalog.zip
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from app.config import get_logging_settings, get_price_catalog_settings
from app.errors import PipelineError
from app.repositories.catalog_repository import CatalogGateway
from app.services.catalog_export_service import CatalogExportService
from db.session import get_session_factory

logger = logging.getLogger("scripts.export_catalog")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the price catalog as a zipped CSV.")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Destination file. Defaults to <PRICES_EXPORT_ARCHIVE_NAME>.zip in the current directory.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=getattr(logging, get_logging_settings().level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = _parse_args(argv)

    settings = get_price_catalog_settings()
    service = CatalogExportService.from_settings(CatalogGateway(get_session_factory()), settings)

    try:
        archive = service.export()
    except PipelineError as exc:
        logger.error("Export failed: %s", exc.public_message)
        return 1

    output: Path = args.output or Path(archive.filename)
    try:
        output.write_bytes(archive.content)
    except OSError as exc:
        logger.error("Unable to write %s: %s", output, exc)
        return 1

    logger.info("Wrote %d catalog rows to %s", archive.rows, output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
