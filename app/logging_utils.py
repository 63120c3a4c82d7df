"""
Structured logging helpers for the ingest and export pipelines.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.errors import PipelineError


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def log_pipeline_failure(
    logger: logging.Logger,
    event: str,
    error: PipelineError,
    **fields: Any,
) -> None:
    """
    Log a pipeline failure with its stage and diagnostic context.

    Server-side failures (5xx) are logged at ERROR, client-side ones at WARNING.
    """

    level = logging.ERROR if error.status_code >= 500 else logging.WARNING
    log_event(logger, level, event, **{**error.to_log_fields(), **fields})
