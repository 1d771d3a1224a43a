"""
Splits a finished answer into prose and its trailing sources section.

The sources header may be English, Arabic, or both ("Sources / المصادر"),
with optional ``#`` markers and colon. Each bullet under it is parsed with
the first matching line format:

1. ``**[Title](URL)** - Author``
2. ``[Title](URL)``
3. ``**book_name:** Title, **source_url:** URL``
4. the same with Arabic keys
5. any line holding a bare URL, the rest of the line being the title
"""

from __future__ import annotations

import re

from .models import AssembledAnswer, Source

HEADER_PATTERN = re.compile(
    r"^[^\S\n]*#*[^\S\n]*(?:المصادر|Sources)"
    r"(?:[^\S\n]*/[^\S\n]*(?:Sources|المصادر))?[^\S\n]*:?[^\S\n]*$",
    re.IGNORECASE | re.MULTILINE,
)

# A lone marker, or a marker followed by whitespace; "**" opens bold text
BULLET_PATTERN = re.compile(r"^(?:[*-]\s+|-|\*(?!\*))")

BOLD_LINK_PATTERN = re.compile(r"\*\*\[(.*?)\]\((.*?)\)\*\*\s*-\s*(.*)")
LINK_PATTERN = re.compile(r"\[(.*?)\]\((https?://[^)\s]+)\)")

BOOK_NAME_PATTERN = re.compile(r"\*\*book_name:\*\*\s*([^,]+)")
SOURCE_URL_PATTERN = re.compile(r"\*\*source_url:\*\*\s*(https?://\S+)")
ARABIC_BOOK_NAME_PATTERN = re.compile(
    r"\*\*(?:اسم\s*الكتاب|عنوان\s*الكتاب):\*\*\s*([^،,]+)"
)
ARABIC_SOURCE_URL_PATTERN = re.compile(
    r"\*\*(?:رابط\s*المصدر|رابط):\*\*\s*(https?://\S+)"
)
STRUCTURED_KEYS = (
    "**book_name:**",
    "**source_url:**",
    "**اسم الكتاب:**",
    "**عنوان الكتاب:**",
    "**رابط المصدر:**",
    "**رابط:**",
)

URL_PATTERN = re.compile(r"https?://\S+")
PAGE_PATTERN = re.compile(r"/book/[^/]+/(\d+)$")

URL_TRAILING_CHARS = ")]}.,،;؛"
TITLE_TRAILING_CHARS = "-:؛;,،"


def normalize_text(raw: str) -> str:
    """Unify line endings, including newlines that arrive escaped."""
    return raw.replace("\r\n", "\n").replace("\\n", "\n")


def normalize_url(url: str) -> str:
    return url.strip().rstrip(URL_TRAILING_CHARS)


def page_from_url(url: str) -> int | None:
    """Page number from a ``.../book/{book_id}/{page}`` URL."""
    path = normalize_url(url).split("?", 1)[0].split("#", 1)[0].rstrip("/")
    match = PAGE_PATTERN.search(path)
    return int(match.group(1)) if match else None


def extract(raw: str) -> AssembledAnswer:
    """
    Split raw answer markdown into clean content and parsed sources.

    Only the region between the first sources header and the next header
    occurrence (or end of text) is read for sources.
    """
    text = normalize_text(raw)

    header = HEADER_PATTERN.search(text)
    if header is None:
        return AssembledAnswer(clean_content=text.strip(), sources=[])

    content = text[:header.start()]
    region = text[header.end():]
    next_header = HEADER_PATTERN.search(region)
    if next_header is not None:
        region = region[:next_header.start()]

    return AssembledAnswer(
        clean_content=content.strip(),
        sources=extract_sources(region),
    )


def extract_sources(section: str) -> list[Source]:
    """Parse every bullet line of a sources section, dropping unparseable ones."""
    sources = []
    for line in section.split("\n"):
        line = line.strip()
        if not line.startswith(("*", "-")):
            continue
        source = parse_source_line(line)
        if source is not None:
            sources.append(source)
    return sources


def parse_source_line(line: str) -> Source | None:
    """Parse one bullet line into a Source, or None if no format matches."""
    clean_line = BULLET_PATTERN.sub("", line.strip(), count=1)

    for parser in (_parse_bold_link, _parse_link, _parse_structured):
        source = parser(clean_line)
        if source is not None:
            return source

    # A structured line missing one of its keys is malformed, not free text
    if any(key in clean_line for key in STRUCTURED_KEYS):
        return None

    return _parse_bare_url(clean_line)


def _make_source(
    line: str, title: str, url: str, author: str | None = None
) -> Source:
    url = normalize_url(url)
    return Source(
        title=title,
        author=author or None,
        url=url,
        volume=None,
        page=page_from_url(url),
        raw_text=line,
    )


def _parse_bold_link(line: str) -> Source | None:
    match = BOLD_LINK_PATTERN.search(line)
    if match is None:
        return None
    title, url, author = (group.strip() for group in match.groups())
    if not title or not url:
        return None
    return _make_source(line, title, url, author)


def _parse_link(line: str) -> Source | None:
    match = LINK_PATTERN.search(line)
    if match is None:
        return None
    title = match.group(1).strip()
    if not title:
        return None
    return _make_source(line, title, match.group(2))


def _parse_structured(line: str) -> Source | None:
    for name_pattern, url_pattern in (
        (BOOK_NAME_PATTERN, SOURCE_URL_PATTERN),
        (ARABIC_BOOK_NAME_PATTERN, ARABIC_SOURCE_URL_PATTERN),
    ):
        name_match = name_pattern.search(line)
        url_match = url_pattern.search(line)
        if name_match is None or url_match is None:
            continue
        title = name_match.group(1).strip()
        if title:
            return _make_source(line, title, url_match.group(1))
    return None


def _parse_bare_url(line: str) -> Source | None:
    match = URL_PATTERN.search(line)
    if match is None:
        return None
    url = normalize_url(match.group(0))
    title = line.replace(match.group(0), "").replace(" - ", " ")
    for bracket in "()[]":
        title = title.replace(bracket, "")
    title = title.strip().rstrip(TITLE_TRAILING_CHARS).strip()
    return _make_source(line, title or url, url)
