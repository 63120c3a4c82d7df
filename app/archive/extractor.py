"""
app/archive/extractor.py

Unpacks an uploaded ZIP archive into a request-scoped scratch area and
locates the CSV payload inside it.

Every entry's destination is resolved and checked against the scratch root
before anything is written, so names such as ``../evil.csv`` or absolute
paths cannot place files outside the scratch area.
"""

from __future__ import annotations

import io
import logging
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from types import TracebackType

from app.errors import ArchiveError, ExtractionError, NotFoundError

logger = logging.getLogger(__name__)

_SCRATCH_PREFIX = "price-upload-"
_METADATA_DIRS = frozenset({"__MACOSX"})

# Raised by zipfile while decompressing a damaged or unsupported entry.
_CORRUPT_ENTRY_ERRORS: tuple[type[BaseException], ...] = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)


class ScratchArea:
    """
    Private directory holding the extracted entries of one upload.

    Use as a context manager: the directory tree is removed when the block
    exits, whatever the outcome.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._released = False

    def __enter__(self) -> ScratchArea:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        shutil.rmtree(self.root, ignore_errors=True)
        if self.root.exists():
            logger.warning("Scratch area could not be fully removed path=%s", self.root)


class ArchiveExtractor:
    """
    Extracts ZIP uploads and finds the CSV payload.

    Parameters
    ----------
    csv_suffix:
        File-name suffix identifying the payload, matched case-insensitively.
    scratch_dir:
        Parent directory for scratch areas. ``None`` uses the system temp dir.
    """

    def __init__(self, *, csv_suffix: str = ".csv", scratch_dir: str | None = None) -> None:
        self._csv_suffix = csv_suffix.lower()
        self._scratch_dir = scratch_dir

    def extract(self, archive_bytes: bytes) -> ScratchArea:
        """
        Materialize every archive entry under a fresh scratch root.

        The caller owns the returned ScratchArea and must release it (normally
        with ``with``). If extraction fails the scratch root is removed here
        before the error propagates.
        """

        try:
            root = Path(tempfile.mkdtemp(prefix=_SCRATCH_PREFIX, dir=self._scratch_dir))
        except OSError as exc:
            raise ExtractionError(
                f"Unable to create scratch directory: {exc}",
                stage="extract",
            ) from exc

        scratch = ScratchArea(root)
        try:
            count = self._extract_into(archive_bytes, root.resolve())
        except BaseException:
            scratch.release()
            raise

        logger.info("Extracted %d archive entries into %s", count, root)
        return scratch

    def locate(self, scratch: ScratchArea) -> Path:
        """
        Return the first extracted file, in sorted listing order, with the CSV suffix.
        """

        candidates = sorted(path for path in scratch.root.rglob("*") if path.is_file())
        for path in candidates:
            relative = path.relative_to(scratch.root)
            if _is_platform_metadata(relative):
                continue
            if path.name.lower().endswith(self._csv_suffix):
                return path

        raise NotFoundError(
            "No CSV entry found in archive.",
            stage="locate",
            files_seen=len(candidates),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_into(self, archive_bytes: bytes, root: Path) -> int:
        try:
            archive = zipfile.ZipFile(io.BytesIO(archive_bytes))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
            raise ArchiveError(f"Corrupt archive container: {exc}", stage="extract") from exc

        count = 0
        with archive:
            for info in archive.infolist():
                target = _resolve_destination(root, info.filename)
                if info.is_dir():
                    _make_dirs(target, entry=info.filename)
                else:
                    _make_dirs(target.parent, entry=info.filename)
                    _write_entry(archive, info, target)
                count += 1
        return count


def _resolve_destination(root: Path, entry_name: str) -> Path:
    """
    Map an archive entry name to a path inside *root*, rejecting escapes.
    """

    if not entry_name or "\x00" in entry_name:
        raise ArchiveError("Archive entry has an invalid name.", stage="extract", entry=entry_name)

    normalized = entry_name.replace("\\", "/")
    if PurePosixPath(normalized).is_absolute() or (len(normalized) > 1 and normalized[1] == ":"):
        raise ArchiveError(
            "Archive entry uses an absolute path.",
            stage="extract",
            entry=entry_name,
        )

    target = (root / normalized).resolve()
    if target != root and root not in target.parents:
        raise ArchiveError(
            "Archive entry escapes the extraction directory.",
            stage="extract",
            entry=entry_name,
        )
    return target


def _make_dirs(path: Path, *, entry: str) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractionError(
            f"Unable to create directory: {exc}",
            stage="extract",
            entry=entry,
        ) from exc


def _write_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    try:
        with archive.open(info) as source, target.open("wb") as sink:
            shutil.copyfileobj(source, sink)
    except _CORRUPT_ENTRY_ERRORS as exc:
        raise ArchiveError(
            f"Corrupt archive entry: {exc}",
            stage="extract",
            entry=info.filename,
        ) from exc
    except OSError as exc:
        raise ExtractionError(
            f"Unable to write archive entry: {exc}",
            stage="extract",
            entry=info.filename,
        ) from exc


def _is_platform_metadata(relative: Path) -> bool:
    parts = relative.parts
    return any(part in _METADATA_DIRS for part in parts[:-1]) or parts[-1].startswith("._")
