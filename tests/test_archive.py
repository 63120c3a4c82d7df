"""
tests/test_archive.py

Unit tests for archive extraction and export packaging.

Extraction runs against a dedicated parent directory per test so a leaked
scratch area is visible as a leftover entry.
"""

from __future__ import annotations

import io
import zipfile
from datetime import date
from decimal import Decimal

import pytest

from app.archive.builder import (
    CSV_HEADER,
    format_price,
    package_archive,
    serialize_csv,
)
from app.archive.extractor import ArchiveExtractor
from app.domain.price_record import CatalogEntry
from app.errors import ArchiveError, ExtractionError, NotFoundError, SerializationError

from conftest import SAMPLE_CSV, build_zip


@pytest.fixture()
def scratch_root(tmp_path):
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture()
def extractor(scratch_root) -> ArchiveExtractor:
    return ArchiveExtractor(scratch_dir=str(scratch_root))


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestArchiveExtractor:
    def test_extract_and_locate_csv(self, extractor: ArchiveExtractor) -> None:
        archive = build_zip({"data.csv": SAMPLE_CSV})

        with extractor.extract(archive) as scratch:
            located = extractor.locate(scratch)
            assert located.name == "data.csv"
            assert located.read_text(encoding="utf-8") == SAMPLE_CSV

    def test_scratch_area_removed_after_block(
        self, extractor: ArchiveExtractor, scratch_root
    ) -> None:
        with extractor.extract(build_zip({"data.csv": SAMPLE_CSV})) as scratch:
            root = scratch.root
            assert root.exists()

        assert scratch.released
        assert not root.exists()
        assert list(scratch_root.iterdir()) == []

    def test_release_is_idempotent(self, extractor: ArchiveExtractor) -> None:
        scratch = extractor.extract(build_zip({"data.csv": SAMPLE_CSV}))
        scratch.release()
        scratch.release()

        assert scratch.released

    def test_locate_finds_nested_csv_case_insensitively(
        self, extractor: ArchiveExtractor
    ) -> None:
        archive = build_zip(
            {
                "readme.txt": "price export",
                "exports/2024/prices.CSV": SAMPLE_CSV,
            }
        )

        with extractor.extract(archive) as scratch:
            assert extractor.locate(scratch).name == "prices.CSV"

    def test_locate_skips_platform_metadata(self, extractor: ArchiveExtractor) -> None:
        archive = build_zip(
            {
                "__MACOSX/._data.csv": b"\x00\x05\x16\x07",
                "._data.csv": b"\x00\x05\x16\x07",
                "data.csv": SAMPLE_CSV,
            }
        )

        with extractor.extract(archive) as scratch:
            located = extractor.locate(scratch)
            assert located.relative_to(scratch.root).as_posix() == "data.csv"

    def test_locate_picks_first_in_sorted_order(self, extractor: ArchiveExtractor) -> None:
        archive = build_zip({"b.csv": SAMPLE_CSV, "a.csv": SAMPLE_CSV})

        with extractor.extract(archive) as scratch:
            assert extractor.locate(scratch).name == "a.csv"

    def test_archive_without_csv_raises_not_found(
        self, extractor: ArchiveExtractor, scratch_root
    ) -> None:
        with extractor.extract(build_zip({"readme.txt": "nothing here"})) as scratch:
            with pytest.raises(NotFoundError) as exc_info:
                extractor.locate(scratch)

        assert exc_info.value.status_code == 400
        assert exc_info.value.public_message == "Unable to find CSV file."
        assert list(scratch_root.iterdir()) == []

    def test_empty_archive_raises_not_found(self, extractor: ArchiveExtractor) -> None:
        with extractor.extract(build_zip({})) as scratch:
            with pytest.raises(NotFoundError):
                extractor.locate(scratch)

    def test_corrupt_container_raises_archive_error(
        self, extractor: ArchiveExtractor, scratch_root
    ) -> None:
        with pytest.raises(ArchiveError) as exc_info:
            extractor.extract(b"this is not a zip archive")

        assert not isinstance(exc_info.value, ExtractionError)
        assert exc_info.value.status_code == 400
        assert exc_info.value.public_message == "Unable to unzip file."
        assert list(scratch_root.iterdir()) == []

    def test_parent_traversal_entry_rejected(
        self, extractor: ArchiveExtractor, scratch_root
    ) -> None:
        archive = build_zip({"data.csv": SAMPLE_CSV, "../evil.csv": "pwned"})

        with pytest.raises(ArchiveError) as exc_info:
            extractor.extract(archive)

        assert exc_info.value.context["entry"] == "../evil.csv"
        assert not (scratch_root / "evil.csv").exists()
        assert list(scratch_root.iterdir()) == []

    def test_nested_traversal_entry_rejected(self, extractor: ArchiveExtractor) -> None:
        archive = build_zip({"exports/../../evil.csv": "pwned"})

        with pytest.raises(ArchiveError):
            extractor.extract(archive)

    def test_absolute_entry_rejected(self, extractor: ArchiveExtractor) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, mode="w") as archive:
            archive.writestr(zipfile.ZipInfo("/tmp/evil.csv"), "pwned")

        with pytest.raises(ArchiveError):
            extractor.extract(buffer.getvalue())

    def test_unwritable_scratch_parent_raises_extraction_error(self, tmp_path) -> None:
        extractor = ArchiveExtractor(scratch_dir=str(tmp_path / "missing" / "parent"))

        with pytest.raises(ExtractionError) as exc_info:
            extractor.extract(build_zip({"data.csv": SAMPLE_CSV}))

        assert exc_info.value.status_code == 500


# ---------------------------------------------------------------------------
# Export packaging
# ---------------------------------------------------------------------------


def _entry(entry_id: int, name: str, price: str, day: date) -> CatalogEntry:
    return CatalogEntry(
        id=entry_id,
        name=name,
        category="Tools",
        price=Decimal(price),
        manufacture_date=day,
    )


class TestArchiveBuilder:
    def test_format_price_always_two_decimals(self) -> None:
        assert format_price(Decimal("19.5")) == "19.50"
        assert format_price(Decimal("9.99")) == "9.99"
        assert format_price(3) == "3.00"
        assert format_price(Decimal("0.005")) == "0.01"

    def test_serialize_csv_header_and_rows(self) -> None:
        payload = serialize_csv(
            [
                _entry(1, "Widget", "9.99", date(2024, 1, 15)),
                _entry(2, "Gadget", "19.5", date(2024, 2, 1)),
            ]
        ).decode("utf-8")

        lines = payload.splitlines()
        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[0] == "id,product_name,product_category,product_price,manufacture_date"
        assert lines[1] == "1,Widget,Tools,9.99,2024-01-15"
        assert lines[2] == "2,Gadget,Tools,19.50,2024-02-01"

    def test_serialize_csv_empty_catalog_is_header_only(self) -> None:
        payload = serialize_csv([]).decode("utf-8")

        assert payload == ",".join(CSV_HEADER) + "\n"

    def test_serialize_csv_quotes_embedded_delimiters(self) -> None:
        payload = serialize_csv([_entry(1, "Widget, large", "1", date(2024, 1, 1))])

        assert b'"Widget, large"' in payload

    def test_serialize_csv_wraps_bad_values(self) -> None:
        broken = CatalogEntry(
            id=1,
            name="Widget",
            category="Tools",
            price=Decimal("1.00"),
            manufacture_date=None,  # type: ignore[arg-type]
        )

        with pytest.raises(SerializationError) as exc_info:
            serialize_csv([broken])

        assert exc_info.value.context["row_number"] == 2

    def test_package_archive_is_complete_and_readable(self) -> None:
        csv_bytes = serialize_csv([_entry(1, "Widget", "9.99", date(2024, 1, 15))])

        content = package_archive(csv_bytes, "data.csv")

        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            assert archive.testzip() is None
            assert archive.namelist() == ["data.csv"]
            assert archive.read("data.csv") == csv_bytes

    def test_package_archive_rejects_directory_entry_name(self) -> None:
        with pytest.raises(SerializationError):
            package_archive(b"id\n", "exports/")
