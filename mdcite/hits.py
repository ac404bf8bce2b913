"""Retrieval hits: the `{webUrl, extracts}` records a knowledge lookup returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import orjson

from mdcite.errors import HitsFormatError


@dataclass(frozen=True)
class RetrievalHit:
    """One retrieved document: its URL, text extracts and optional title."""

    web_url: str
    extracts: list[str] = field(default_factory=list)
    title: str = ""

    @property
    def snippet(self) -> str:
        """First extract text, or "" when there is none."""
        return self.extracts[0] if self.extracts else ""

    @classmethod
    def from_dict(cls, data: Any) -> RetrievalHit:
        if not isinstance(data, dict):
            raise HitsFormatError(f"Retrieval hit must be an object, got {type(data).__name__}")

        web_url = data.get("webUrl")
        if not isinstance(web_url, str):
            raise HitsFormatError("Retrieval hit is missing a string 'webUrl'")

        raw_extracts = data.get("extracts") or []
        if not isinstance(raw_extracts, list):
            raise HitsFormatError(f"'extracts' must be a list for hit {web_url}")
        extracts = [
            e["text"] for e in raw_extracts
            if isinstance(e, dict) and isinstance(e.get("text"), str)
        ]

        title = ""
        metadata = data.get("resourceMetadata")
        if isinstance(metadata, dict) and isinstance(metadata.get("title"), str):
            title = metadata["title"]

        return cls(web_url=web_url, extracts=extracts, title=title)


def parse_hits(payload: Any) -> list[RetrievalHit]:
    """Build hits from a decoded payload.

    Accepts either a bare list of hits or the full retrieval response
    object carrying a `retrievalHits` list.
    """
    if isinstance(payload, dict):
        if "retrievalHits" not in payload:
            raise HitsFormatError("Expected a list of hits or an object with 'retrievalHits'")
        payload = payload["retrievalHits"]
    if not isinstance(payload, list):
        raise HitsFormatError(f"Expected a list of hits, got {type(payload).__name__}")
    return [RetrievalHit.from_dict(item) for item in payload]


def load_hits(data: bytes | str) -> list[RetrievalHit]:
    """Decode a JSON hits document."""
    try:
        payload = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise HitsFormatError(f"Invalid hits JSON: {e}") from e
    return parse_hits(payload)
