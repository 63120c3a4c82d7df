"""
app/schemas package marker.
"""

from app.schemas.prices import ErrorResponse, PriceIngestResponse

__all__ = [
    "ErrorResponse",
    "PriceIngestResponse",
]
