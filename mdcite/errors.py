"""Exceptions raised at the edges of mdcite (loading sources and hits)."""

from __future__ import annotations


class MdciteError(Exception):
    """Base class for mdcite errors."""


class SourceError(MdciteError):
    """A markdown source could not be read or fetched."""


class HitsFormatError(MdciteError, ValueError):
    """A retrieval hits payload does not have the expected shape."""
