"""File writers: markdown and JSON."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def dumps_json(obj: Any) -> bytes:
    """Serialize to indented JSON bytes."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2)


def save_markdown(content: str, output_path: Path) -> None:
    """Save markdown content to file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")


def save_json(obj: Any, output_path: Path) -> int:
    """Save an object as indented JSON.

    Returns file size in bytes.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(dumps_json(obj))
    return output_path.stat().st_size


def resolve_output_path(output_path: str, slug: str, suffix: str) -> Path:
    """A directory (existing or ending in "/") gets `<slug><suffix>` inside it."""
    out = Path(output_path)
    if out.is_dir() or output_path.endswith("/"):
        out.mkdir(parents=True, exist_ok=True)
        out = out / f"{slug}{suffix}"
    return out
