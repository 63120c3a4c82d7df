"""
app/errors.py

Error taxonomy for the price ingest and export pipelines.

Every error carries the pipeline ``stage`` it was raised from, a terse
``public_message`` that is safe to return to the caller, and the HTTP
``status_code`` the router maps it to. Diagnostic details (row numbers,
entry names, driver messages) stay in ``context`` and only reach the logs.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """
    Base class for terminal pipeline failures.
    """

    status_code: int = 500
    default_message: str = "Request could not be processed."

    def __init__(
        self,
        message: str | None = None,
        *,
        stage: str,
        public_message: str | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message or public_message or self.default_message)
        self.stage = stage
        self.public_message = public_message or self.default_message
        self.context = context

    def to_log_fields(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "error_type": type(self).__name__,
            "error_message": str(self),
            **self.context,
        }


class InputError(PipelineError):
    """Malformed multipart body, missing file field or empty upload."""

    status_code = 400
    default_message = "Unable to read uploaded file."


class UploadTooLargeError(InputError):
    status_code = 413
    default_message = "Uploaded file is too large."


class ArchiveError(PipelineError):
    """Corrupt archive container or an entry escaping the scratch root."""

    status_code = 400
    default_message = "Unable to unzip file."


class NotFoundError(ArchiveError):
    """The archive holds no CSV payload."""

    default_message = "Unable to find CSV file."


class ExtractionError(ArchiveError):
    """Local I/O failure while writing an extracted entry."""

    status_code = 500
    default_message = "Unable to extract archive."


class ParseError(PipelineError):
    """
    An invalid field in any row. The whole batch is rejected.
    """

    default_message = "Unable to read CSV file."

    def __init__(
        self,
        message: str,
        *,
        row_number: int | None = None,
        column: str | None = None,
        value: str | None = None,
    ) -> None:
        super().__init__(
            message,
            stage="parse",
            row_number=row_number,
            column=column,
            value=value,
        )
        self.row_number = row_number
        self.column = column
        self.value = value


class StorageError(PipelineError):
    """Transaction begin, statement execution, commit or query failure."""

    default_message = "Unable to store price records."


class SerializationError(PipelineError):
    """Export CSV or archive construction failure."""

    default_message = "Unable to build export archive."
