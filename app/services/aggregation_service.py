"""
app/services/aggregation_service.py

Catalog statistics reported after an ingest.

Query design
------------
Category cardinality and the price total are read back from the durable
catalog with a single aggregate statement once the ingest transaction has
committed::

    SELECT COUNT(DISTINCT product_category), COALESCE(SUM(product_price), 0)
    FROM   prices

There are no per-row "is this category new" lookups, so N+1 round-trips are
structurally impossible and concurrent ingests cannot double-count a
category. Only ``items_added`` is batch-local.

Two ingests committing concurrently may each see a different post-commit
snapshot (read-committed). The figures are eventually consistent across
concurrent writers, not linearizable.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from app.domain.price_record import AggregateSummary, IngestBatch
from app.repositories.catalog_repository import CatalogGateway


def distinct_count(values: Iterable[str]) -> int:
    """
    Number of distinct values, independent of order.
    """
    return len(set(values))


class AggregationService:
    """
    Builds AggregateSummary values from the catalog.

    Parameters
    ----------
    gateway:
        Catalog gateway the post-commit aggregate query runs against.
    """

    def __init__(self, gateway: CatalogGateway) -> None:
        self._gateway = gateway

    def summarize(self, *, items_added: int) -> AggregateSummary:
        """
        Catalog-wide summary. Must be called after the ingest transaction commits.
        """
        total_categories, total_price = self._gateway.query_aggregate()
        return AggregateSummary(
            items_added=items_added,
            total_categories=total_categories,
            total_price=total_price,
        )

    @staticmethod
    def summarize_batch(records: IngestBatch) -> AggregateSummary:
        """
        Batch-local summary of the in-memory records. Used for logging only.
        """
        return AggregateSummary(
            items_added=len(records),
            total_categories=distinct_count(record.category for record in records),
            total_price=sum((record.price for record in records), Decimal("0")),
        )
