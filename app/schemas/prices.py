"""
app/schemas/prices.py

Response schemas for the price catalog endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.price_record import AggregateSummary


class PriceIngestResponse(BaseModel):
    """
    Statistics returned after a successful upload.

    ``total_items`` counts rows added by this upload; ``total_categories`` and
    ``total_price`` cover the whole catalog.
    """

    total_items: int = Field(..., ge=0)
    total_categories: int = Field(..., ge=0)
    total_price: float = Field(..., ge=0)

    @classmethod
    def from_summary(cls, summary: AggregateSummary) -> PriceIngestResponse:
        return cls(
            total_items=summary.items_added,
            total_categories=summary.total_categories,
            total_price=float(summary.total_price),
        )


class ErrorResponse(BaseModel):
    detail: str
