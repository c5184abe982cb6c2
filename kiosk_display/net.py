"""Small HTTP helpers shared by the weather and feed adapters."""

from __future__ import annotations

import json
import urllib.parse
import urllib.request
from typing import Any, Callable, Mapping

Opener = Callable[[str, float], bytes]


def urlopen_bytes(url: str, timeout: float) -> bytes:
    request = urllib.request.Request(
        url,
        headers={"Cache-Control": "no-cache", "User-Agent": "kiosk-display"},
    )
    with urllib.request.urlopen(request, timeout=timeout) as response:
        return response.read()


def build_url(base_url: str, params: Mapping[str, object | None] | None = None) -> str:
    clean = {key: str(value) for key, value in (params or {}).items() if value is not None}
    query = urllib.parse.urlencode(clean)
    return f"{base_url}?{query}" if query else base_url


def fetch_json(opener: Opener, url: str, timeout: float) -> Any:
    return json.loads(opener(url, timeout).decode("utf-8"))


def redact(url: str, *secret_params: str) -> str:
    """Return ``url`` with the given query parameters masked for logging."""

    parts = urllib.parse.urlsplit(url)
    query = [
        (key, "***" if key in secret_params else value)
        for key, value in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


__all__ = ["Opener", "build_url", "fetch_json", "redact", "urlopen_bytes"]
