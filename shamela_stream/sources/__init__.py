"""Citation extraction from finished answers."""

from __future__ import annotations

from .extractor import extract, extract_sources, parse_source_line
from .models import AssembledAnswer, Source

__all__ = [
    "AssembledAnswer",
    "Source",
    "extract",
    "extract_sources",
    "parse_source_line",
]
