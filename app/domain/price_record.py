"""
app/domain/price_record.py

Domain models used by the price ingest and export flows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence


@dataclass(frozen=True)
class PriceRecord:
    """
    One validated row parsed from an uploaded CSV.
    """

    name: str
    category: str
    price: Decimal
    manufacture_date: date


IngestBatch = Sequence[PriceRecord]


@dataclass(frozen=True)
class CatalogEntry:
    """
    One committed catalog row as read back from the store.
    """

    id: int
    name: str
    category: str
    price: Decimal
    manufacture_date: date


@dataclass(frozen=True)
class AggregateSummary:
    """
    Post-ingest statistics.

    ``items_added`` counts rows committed by the current request;
    ``total_categories`` and ``total_price`` cover the whole catalog.
    """

    items_added: int
    total_categories: int
    total_price: Decimal


@dataclass(frozen=True)
class ExportArchive:
    """
    Finalized export archive ready to be sent.
    """

    filename: str
    content: bytes
    rows: int
