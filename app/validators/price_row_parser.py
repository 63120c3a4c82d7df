"""
app/validators/price_row_parser.py

Row-level validation and type parsing for uploaded price CSVs.

Layout is positional: name, category, price, manufacture date. The first
non-comment, non-blank record is a header and is discarded unread. A "#" only
marks a comment at the start of a record; continuation lines of a quoted
multi-line field are passed through untouched. Any invalid row aborts
the whole parse with ParseError; a partial batch is never returned.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterator
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import TextIO

from app.domain.price_record import PriceRecord
from app.errors import ParseError
from db.base import PRICE_PRECISION, PRICE_SCALE

COMMENT_MARKER = "#"
DATE_FORMAT = "%Y-%m-%d"

NAME_INDEX = 0
CATEGORY_INDEX = 1
PRICE_INDEX = 2
DATE_INDEX = 3
MIN_COLUMNS = 4

_DATE_LITERAL = re.compile(r"\d{4}-\d{2}-\d{2}")
_PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_SCALE)
_PRICE_LIMIT = Decimal(10) ** (PRICE_PRECISION - PRICE_SCALE)


class _CommentFilter:
    """
    Line iterator that drops comment lines and tracks the physical line number.

    Lines are only tested for the comment marker while ``at_record_start`` is
    set; the caller raises it before asking the csv reader for the next record.
    """

    def __init__(self, lines: TextIO) -> None:
        self._lines = iter(lines)
        self.line_number = 0
        self.at_record_start = True

    def __iter__(self) -> _CommentFilter:
        return self

    def __next__(self) -> str:
        while True:
            line = next(self._lines)
            self.line_number += 1
            if self.at_record_start and line.startswith(COMMENT_MARKER):
                continue
            self.at_record_start = False
            return line


class PriceRowParser:
    """
    Parses price CSV streams into PriceRecord batches.
    """

    def parse(self, source: TextIO) -> tuple[PriceRecord, ...]:
        """
        Parse the whole stream and return every record, or raise ParseError.
        """

        return tuple(self.iter_records(source))

    def parse_file(self, path: Path) -> tuple[PriceRecord, ...]:
        """
        Open *path* as UTF-8 (BOM tolerated) and parse it.
        """

        try:
            with path.open("r", encoding="utf-8-sig", newline="") as handle:
                return self.parse(handle)
        except UnicodeDecodeError as exc:
            raise ParseError("CSV must be UTF-8 encoded.") from exc

    def iter_records(self, source: TextIO) -> Iterator[PriceRecord]:
        """
        Yield records one at a time. Single pass; not restartable.
        """

        lines = _CommentFilter(source)
        reader = csv.reader(lines, delimiter=",")
        header_seen = False

        while True:
            lines.at_record_start = True
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                raise ParseError(
                    f"Invalid CSV format: {exc}",
                    row_number=lines.line_number,
                ) from exc

            if not row or all(not field.strip() for field in row):
                continue
            if not header_seen:
                header_seen = True
                continue

            yield self.parse_row(row, row_number=lines.line_number)

    def parse_row(self, row: list[str], *, row_number: int) -> PriceRecord:
        """
        Validate one split row and build a PriceRecord.
        """

        if len(row) < MIN_COLUMNS:
            raise ParseError(
                f"Expected at least {MIN_COLUMNS} columns, found {len(row)}.",
                row_number=row_number,
                value=",".join(row),
            )

        return PriceRecord(
            name=self._parse_required_string(row[NAME_INDEX], row_number=row_number, column="name"),
            category=self._parse_required_string(
                row[CATEGORY_INDEX], row_number=row_number, column="category"
            ),
            price=self._parse_price(row[PRICE_INDEX], row_number=row_number),
            manufacture_date=self._parse_date(row[DATE_INDEX], row_number=row_number),
        )

    def _parse_required_string(self, value: str, *, row_number: int, column: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ParseError(
                "Required value is missing.",
                row_number=row_number,
                column=column,
                value=value,
            )
        return stripped

    def _parse_price(self, value: str, *, row_number: int) -> Decimal:
        raw_value = value.strip()
        try:
            price = Decimal(raw_value)
        except (InvalidOperation, ValueError) as exc:
            raise ParseError(
                "Price is not a decimal number.",
                row_number=row_number,
                column="price",
                value=value,
            ) from exc

        if not price.is_finite():
            raise ParseError(
                "Price must be a finite number.",
                row_number=row_number,
                column="price",
                value=value,
            )
        if price < 0:
            raise ParseError(
                "Price must not be negative.",
                row_number=row_number,
                column="price",
                value=value,
            )
        # Compare before quantizing: quantize overflows the context for huge exponents.
        if (
            price >= _PRICE_LIMIT
            or price.quantize(_PRICE_QUANTUM, rounding=ROUND_HALF_UP) >= _PRICE_LIMIT
        ):
            raise ParseError(
                f"Price must be below {_PRICE_LIMIT}.",
                row_number=row_number,
                column="price",
                value=value,
            )
        return price

    def _parse_date(self, value: str, *, row_number: int) -> date:
        raw_value = value.strip()
        if not _DATE_LITERAL.fullmatch(raw_value):
            raise ParseError(
                "Manufacture date must use YYYY-MM-DD.",
                row_number=row_number,
                column="manufacture_date",
                value=value,
            )
        try:
            return datetime.strptime(raw_value, DATE_FORMAT).date()
        except ValueError as exc:
            raise ParseError(
                "Manufacture date is not a calendar date.",
                row_number=row_number,
                column="manufacture_date",
                value=value,
            ) from exc
