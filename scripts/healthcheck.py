"""
scripts/healthcheck.py

Container health probe for the import API: exits 0 when GET /health answers
with {"status": "ok"}.
"""

from __future__ import annotations

import json
import os
import sys
from urllib.error import URLError
from urllib.request import urlopen


def probe_url() -> str:
    host = os.getenv("HEALTHCHECK_HOST", "127.0.0.1")
    port = os.getenv("PORT", "8000")
    path = os.getenv("HEALTHCHECK_PATH", "/health")
    return f"http://{host}:{port}{path}"


def is_healthy(status_code: int, body: bytes) -> bool:
    if not 200 <= status_code < 300:
        return False
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return False
    return isinstance(payload, dict) and payload.get("status") == "ok"


def main() -> int:
    url = probe_url()
    try:
        with urlopen(url, timeout=2) as response:
            healthy = is_healthy(response.status, response.read())
    except (URLError, TimeoutError, ValueError) as exc:
        print(f"healthcheck failed url={url} error={exc}", file=sys.stderr)
        return 1
    return 0 if healthy else 1


if __name__ == "__main__":
    raise SystemExit(main())
