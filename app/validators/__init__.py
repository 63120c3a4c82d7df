"""
app/validators package marker.
"""

from app.validators.price_row_parser import PriceRowParser

__all__ = [
    "PriceRowParser",
]
