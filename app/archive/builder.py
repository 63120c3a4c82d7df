"""
app/archive/builder.py

Serializes catalog entries to CSV and packages them into a ZIP archive.
"""

from __future__ import annotations

import csv
import io
import zipfile
from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from app.domain.price_record import CatalogEntry
from app.errors import SerializationError

CSV_HEADER: tuple[str, ...] = (
    "id",
    "product_name",
    "product_category",
    "product_price",
    "manufacture_date",
)

_CENT = Decimal("0.01")


def format_price(value: Decimal | float | int) -> str:
    """Format a price with exactly two decimal places."""
    return format(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP), "f")


def format_date(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def serialize_csv(entries: Iterable[CatalogEntry]) -> bytes:
    """
    Render *entries* as UTF-8 CSV bytes with the fixed export header.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    row_number = 1
    try:
        writer.writerow(CSV_HEADER)
        for row_number, entry in enumerate(entries, start=2):
            writer.writerow(
                (
                    str(entry.id),
                    entry.name,
                    entry.category,
                    format_price(entry.price),
                    format_date(entry.manufacture_date),
                )
            )
        return buffer.getvalue().encode("utf-8")
    except (csv.Error, ArithmeticError, ValueError, TypeError, AttributeError) as exc:
        raise SerializationError(
            f"Unable to write CSV row: {exc}",
            stage="serialize",
            row_number=row_number,
        ) from exc


def package_archive(csv_bytes: bytes, entry_name: str) -> bytes:
    """
    Wrap *csv_bytes* as the single entry *entry_name* of a new ZIP archive.

    The writer is closed (central directory written) before the buffer is
    read, so the returned bytes are always a complete archive.
    """

    name = entry_name.replace("\\", "/").lstrip("/")
    if not name or name.endswith("/"):
        raise SerializationError(
            "Archive entry name must name a file.",
            stage="serialize",
            entry=entry_name,
        )

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(name, csv_bytes)
    except (OSError, ValueError, zipfile.LargeZipFile) as exc:
        raise SerializationError(
            f"Unable to build archive: {exc}",
            stage="serialize",
            entry=name,
        ) from exc

    return buffer.getvalue()
