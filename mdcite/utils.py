"""Utility functions for mdcite."""

import re
from pathlib import Path
from urllib.parse import urlparse


def source_to_slug(source: str) -> str:
    """Generate a filesystem-safe filename from a URL or file path."""
    if source.startswith(("http://", "https://")):
        parsed = urlparse(source)
        slug = parsed.netloc + parsed.path
    elif source == "-":
        slug = "stdin"
    else:
        slug = Path(source).stem
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", slug)
    slug = re.sub(r"_+", "_", slug).strip("_")
    return slug[:100] if slug else "document"
