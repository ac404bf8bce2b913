"""Markdown link extraction.

Finds every link-like construct in a markdown document:
    [text](url "opt title")     inline link
    <https://example.com>       autolink
    [text][id] / [text][]       reference link, resolved against `[id]: url`

Images (`![alt](src)`, `![alt][id]`) are ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# [id]: url "opt title"  /  [id]: <url>
REF_DEF_PATTERN = re.compile(
    r"^[ \t]{0,3}\[([^\]\r\n]+)\]:\s*<?([^\s>]+)>?(?:\s+[\"'(].*?[\"')])?\s*$",
    re.MULTILINE,
)

# Images are matched too (leading "!") and discarded by the caller
INLINE_LINK_PATTERN = re.compile(r"!?\[(?P<text>[^\]]*)\]\((?P<inside>[^)]+)\)")
REF_LINK_PATTERN = re.compile(r"!?\[(?P<text>[^\]]+)\]\[(?P<id>[^\]\r\n]*)\]")

AUTOLINK_PATTERN = re.compile(r"<([a-zA-Z][a-zA-Z0-9+.-]*:[^>\s]+)>")


@dataclass(frozen=True)
class MarkdownLink:
    """A detected link: display title and resolved URL (either may be empty)."""

    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url}


@dataclass(frozen=True)
class LinkOccurrence:
    title: str
    url: str
    start: int
    end: int

    @property
    def link(self) -> MarkdownLink:
        return MarkdownLink(self.title, self.url)


def harvest_definitions(markdown: str) -> dict[str, str]:
    """Collect reference definitions as lowercased id -> URL.

    Later definitions of the same id win.
    """
    references: dict[str, str] = {}
    for match in REF_DEF_PATTERN.finditer(markdown):
        references[match.group(1).strip().lower()] = match.group(2).strip()
    return references


def parse_link_target(inside: str) -> str:
    """Pull the URL out of the parenthesised part of an inline link.

    `<url> "title"` yields the bracketed URL, otherwise the first
    whitespace-delimited token is the URL and any title is ignored.
    """
    inside = inside.strip()
    if inside.startswith("<"):
        close = inside.find(">")
        if close > 0:
            return inside[1:close].strip()
        return inside.replace("<", "").replace(">", "").strip()
    tokens = inside.split()
    return tokens[0] if tokens else ""


def scan_occurrences(markdown: str) -> list[LinkOccurrence]:
    """Locate link occurrences with their source spans.

    Results are grouped by pass (inline, then autolink, then reference) and
    are in document order only within each group.
    """
    if not markdown:
        return []

    references = harvest_definitions(markdown)
    occurrences: list[LinkOccurrence] = []

    for match in INLINE_LINK_PATTERN.finditer(markdown):
        if match.group(0).startswith("!"):
            continue
        url = parse_link_target(match.group("inside"))
        # Inline links without a URL are dropped entirely
        if not url:
            continue
        occurrences.append(
            LinkOccurrence(match.group("text").strip(), url, match.start(), match.end())
        )

    for match in AUTOLINK_PATTERN.finditer(markdown):
        occurrences.append(
            LinkOccurrence("", match.group(1).strip(), match.start(), match.end())
        )

    for match in REF_LINK_PATTERN.finditer(markdown):
        if match.group(0).startswith("!"):
            continue
        text = match.group("text").strip()
        ref_id = match.group("id").strip() or text  # [text][] shortcut
        # Unresolved references are kept with an empty URL
        url = references.get(ref_id.lower(), "")
        occurrences.append(LinkOccurrence(text, url, match.start(), match.end()))

    return occurrences


def extract_markdown_links(markdown: str) -> list[MarkdownLink]:
    """Extract all links from a markdown string.

    Returns:
        list of MarkdownLink: inline links first, then autolinks, then
        reference-style links. Never raises; empty input gives [].
    """
    return [occurrence.link for occurrence in scan_occurrences(markdown)]
