"""
tests/test_aggregation_service.py

Pytest unit tests for AggregationService.

The catalog-wide summary is read through a stub gateway; the batch-local
summary is pure and needs no store at all.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.domain.price_record import AggregateSummary, PriceRecord
from app.services.aggregation_service import AggregationService, distinct_count


class _StubGateway:
    def __init__(self, categories: int, total: Decimal) -> None:
        self._result = (categories, total)
        self.calls = 0

    def query_aggregate(self) -> tuple[int, Decimal]:
        self.calls += 1
        return self._result


def _record(category: str, price: str) -> PriceRecord:
    return PriceRecord(
        name="item",
        category=category,
        price=Decimal(price),
        manufacture_date=date(2024, 1, 1),
    )


# ---------------------------------------------------------------------------
# distinct_count
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("values", "expected"),
    [
        ([], 0),
        (["Tools"], 1),
        (["Tools", "Tools", "Kitchen"], 2),
        (["Kitchen", "Tools", "Kitchen", "Tools"], 2),
    ],
)
def test_distinct_count(values: list[str], expected: int) -> None:
    assert distinct_count(values) == expected


def test_distinct_count_is_case_sensitive() -> None:
    assert distinct_count(["tools", "Tools"]) == 2


def test_distinct_count_ignores_order() -> None:
    values = ["a", "b", "c", "a"]
    assert distinct_count(values) == distinct_count(list(reversed(values)))


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


def test_summarize_reads_catalog_wide_figures() -> None:
    gateway = _StubGateway(categories=3, total=Decimal("120.40"))
    service = AggregationService(gateway)  # type: ignore[arg-type]

    summary = service.summarize(items_added=2)

    assert summary == AggregateSummary(
        items_added=2,
        total_categories=3,
        total_price=Decimal("120.40"),
    )
    assert gateway.calls == 1


def test_summarize_with_zero_rows_added() -> None:
    service = AggregationService(_StubGateway(0, Decimal("0.00")))  # type: ignore[arg-type]

    summary = service.summarize(items_added=0)

    assert summary.items_added == 0
    assert summary.total_categories == 0
    assert summary.total_price == Decimal("0.00")


# ---------------------------------------------------------------------------
# summarize_batch
# ---------------------------------------------------------------------------


def test_summarize_batch_single_category() -> None:
    batch = [_record("Tools", "9.99"), _record("Tools", "19.50")]

    summary = AggregationService.summarize_batch(batch)

    assert summary.items_added == 2
    assert summary.total_categories == 1
    assert summary.total_price == Decimal("29.49")


def test_summarize_batch_empty() -> None:
    summary = AggregationService.summarize_batch([])

    assert summary == AggregateSummary(items_added=0, total_categories=0, total_price=Decimal("0"))
