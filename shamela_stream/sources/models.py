"""
Citation dataclasses produced by the source extractor.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Source:
    """One citation from the sources section of a finished answer."""
    title: str
    author: str | None = None
    url: str | None = None
    volume: int | None = None
    page: int | None = None
    raw_text: str = ""

    @property
    def citation(self) -> str:
        """Formatted citation for display and sharing."""
        parts = [self.title]
        if self.author:
            parts.append(self.author)
        if self.volume is not None and self.page is not None:
            parts.append(f"{self.volume}/{self.page}")
        elif self.page is not None:
            parts.append(f"p. {self.page}")
        return ", ".join(parts)


@dataclass(frozen=True)
class AssembledAnswer:
    """Answer prose with its sources section split off and parsed."""
    clean_content: str
    sources: list[Source] = field(default_factory=list)

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)
