"""
db/base.py

Declarative base for all SQLAlchemy models.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase

# Fixed-point layout shared by every Decimal column (money).
PRICE_PRECISION = 12
PRICE_SCALE = 2


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    All models must inherit from this class.
    """

    type_annotation_map: dict[type, Any] = {
        Decimal: Numeric(PRICE_PRECISION, PRICE_SCALE),
    }
