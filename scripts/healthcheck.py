"""
Container health probe for the price catalog API.

Exits 0 when ``/health`` answers with ``{"status": "ok"}``, 1 otherwise.
"""

from __future__ import annotations

import json
import os
from urllib.error import URLError
from urllib.request import urlopen


def build_url() -> str:
    host = os.getenv("HEALTHCHECK_HOST", "127.0.0.1")
    port = os.getenv("PORT", "8000")
    path = os.getenv("HEALTHCHECK_PATH", "/health")
    return f"http://{host}:{port}{path}"


def main() -> int:
    try:
        with urlopen(build_url(), timeout=2) as response:
            if not 200 <= response.status < 300:
                return 1
            body = json.loads(response.read().decode("utf-8") or "{}")
    except (URLError, TimeoutError, ValueError):
        return 1
    return 0 if body.get("status") == "ok" else 1


if __name__ == "__main__":
    raise SystemExit(main())
