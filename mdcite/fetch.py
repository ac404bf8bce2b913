"""Markdown source loading: local file, stdin, or http(s) URL via httpx."""

from __future__ import annotations

import sys
from pathlib import Path

import httpx
import structlog

from mdcite.errors import SourceError

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "mdcite/0.1 (+https://pypi.org/project/mdcite/)",
    "Accept": "text/markdown,text/plain;q=0.9,*/*;q=0.8",
}


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_text(
    url: str,
    timeout: int = 30,
    follow_redirects: bool = True,
    headers: dict[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Fetch a URL and return its body as text.

    Raises:
        SourceError: on transport failures or a non-2xx response.
    """
    request_headers = dict(DEFAULT_HEADERS)
    if headers:
        request_headers.update(headers)

    try:
        with httpx.Client(
            timeout=timeout,
            follow_redirects=follow_redirects,
            headers=request_headers,
            transport=transport,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SourceError(f"{url} returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise SourceError(f"Could not fetch {url}: {e}") from e

    logger.debug("source_fetched", url=str(response.url), status=response.status_code)
    return response.text


def read_source(source: str, timeout: int = 30) -> str:
    """Read markdown from "-" (stdin), a URL, or a file path."""
    if source == "-":
        return sys.stdin.read()

    if is_url(source):
        return fetch_text(source, timeout=timeout)

    path = Path(source)
    if not path.is_file():
        raise SourceError(
            f"Source must be a URL (http/https), '-' or an existing file: {source}"
        )
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"Could not read {source}: {e}") from e
