"""Link-to-marker citation system.

Replaces markdown links by their order of appearance:
    [text](url)                ->  [1]
    [text][id] / [text][]      ->  [2]
    <https://...> / <a@b.com>  ->  [3]

Images, fenced code blocks, inline code and `[id]: url` definition lines
are left untouched. The extracted links are joined against retrieval hits
to build the matching citation list.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import structlog

from mdcite.errors import HitsFormatError
from mdcite.hits import RetrievalHit
from mdcite.links import extract_markdown_links

logger = structlog.get_logger(__name__)

# An unterminated fence runs to the end of the document
FENCED_BLOCK_PATTERN = re.compile(
    r"^[ \t]{0,3}(?P<fence>```|~~~).*?(?:\n[ \t]{0,3}(?P=fence)|\Z)",
    re.MULTILINE | re.DOTALL,
)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")
DEF_LINE_PATTERN = re.compile(r"^[ \t]{0,3}\[[^\]\r\n]+\]:[^\n]*$", re.MULTILINE)

INLINE_LINK_PATTERN = re.compile(r"!?\[[^\]]*\]\([^)]+\)")
REF_LINK_PATTERN = re.compile(r"!?\[[^\]]+\]\[[^\]\r\n]*\]")
ANGLE_PATTERN = re.compile(r"<([^>\s]+)>")

URL_LIKE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:[^\s]+$")
EMAIL_LIKE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True, order=True)
class Span:
    """Half-open [start, end) character range."""

    start: int
    end: int

    def intersects(self, other: Span) -> bool:
        return not (self.end <= other.start or other.end <= self.start)


def _overlaps_any(span: Span, spans: Iterable[Span]) -> bool:
    return any(span.intersects(other) for other in spans)


def exclusion_spans(markdown: str) -> list[Span]:
    """Regions where link-like text must not be rewritten.

    Fenced code blocks, inline code outside those blocks, and reference
    definition lines.
    """
    excluded = [Span(*m.span()) for m in FENCED_BLOCK_PATTERN.finditer(markdown)]

    for match in INLINE_CODE_PATTERN.finditer(markdown):
        span = Span(*match.span())
        if not _overlaps_any(span, excluded):
            excluded.append(span)

    excluded.extend(Span(*m.span()) for m in DEF_LINE_PATTERN.finditer(markdown))
    return excluded


def _is_autolink(inner: str) -> bool:
    return bool(URL_LIKE.match(inner) or EMAIL_LIKE.match(inner))


def find_link_spans(markdown: str, excluded: list[Span] | None = None) -> list[Span]:
    """Spans of every rewritable link, sorted by start offset.

    Overlapping hits from different construct classes are all kept.
    """
    if excluded is None:
        excluded = exclusion_spans(markdown)

    hits: list[Span] = []
    for pattern in (INLINE_LINK_PATTERN, REF_LINK_PATTERN):
        for match in pattern.finditer(markdown):
            if match.group(0).startswith("!"):
                continue
            span = Span(*match.span())
            if not _overlaps_any(span, excluded):
                hits.append(span)

    for match in ANGLE_PATTERN.finditer(markdown):
        span = Span(*match.span())
        if _is_autolink(match.group(1)) and not _overlaps_any(span, excluded):
            hits.append(span)

    hits.sort(key=lambda s: s.start)
    return hits


def replace_links_with_order(markdown: str) -> str:
    """Replace every link by `[n]`, numbered by order of appearance.

    Text outside the replaced links is copied verbatim. Returns the input
    unchanged when there is nothing to replace.
    """
    if not markdown:
        return markdown

    hits = find_link_spans(markdown)
    if not hits:
        return markdown

    parts: list[str] = []
    cursor = 0
    for i, hit in enumerate(hits, start=1):
        parts.append(markdown[cursor:hit.start])
        parts.append(f"[{i}]")
        cursor = hit.end
    parts.append(markdown[cursor:])
    return "".join(parts)


@dataclass(frozen=True)
class Citation:
    """A numbered source backing part of an answer."""

    index: int
    title: str
    url: str
    content: str = ""

    @property
    def filepath(self) -> str:
        return self.url

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "filepath": self.filepath,
        }


@dataclass(frozen=True)
class CitedAnswer:
    text: str
    citations: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "citations": [c.to_dict() for c in self.citations],
        }


def _coerce_hits(hits: Iterable[RetrievalHit | dict]) -> list[RetrievalHit]:
    """Normalise hits, skipping raw entries that are not valid hits."""
    coerced: list[RetrievalHit] = []
    for hit in hits:
        if isinstance(hit, RetrievalHit):
            coerced.append(hit)
            continue
        try:
            coerced.append(RetrievalHit.from_dict(hit))
        except HitsFormatError as e:
            logger.warning("retrieval_hit_skipped", reason=str(e))
    return coerced


def build_citations(
    answer: str,
    hits: Iterable[RetrievalHit | dict] = (),
) -> list[Citation]:
    """Turn the links of an answer into citations.

    Each link is matched to the first hit whose `web_url` equals the
    URL-decoded link URL; that hit's first extract becomes the citation
    content. Link order (and so numbering) follows `extract_markdown_links`.
    Malformed raw hit dicts are skipped with a warning, never raised.
    """
    hit_list = _coerce_hits(hits)
    citations: list[Citation] = []

    for i, link in enumerate(extract_markdown_links(answer), start=1):
        decoded = unquote(link.url)
        hit = next((h for h in hit_list if h.web_url == decoded), None)

        title = link.title
        content = ""
        if hit is not None:
            content = hit.snippet
            title = title or hit.title

        citations.append(Citation(index=i, title=title, url=link.url, content=content))

    logger.debug(
        "citations_built",
        links=len(citations),
        matched=sum(1 for c in citations if c.content),
        hits=len(hit_list),
    )
    return citations


def cite_answer(answer: str, hits: Iterable[RetrievalHit | dict] = ()) -> CitedAnswer:
    """Rewrite an answer with `[n]` markers and build its citation list."""
    return CitedAnswer(
        text=replace_links_with_order(answer),
        citations=build_citations(answer, hits),
    )


def format_references(citations: list[Citation]) -> str:
    """Render citations as a `## References` block ("" when empty)."""
    if not citations:
        return ""

    lines = ["", "## References", ""]
    for c in citations:
        if c.title and c.url:
            lines.append(f"[{c.index}] {c.title}: {c.url}")
        else:
            lines.append(f"[{c.index}] {c.title or c.url}".rstrip())

    return "\n".join(lines)
