"""Render target: the parsed form markup media get bound into."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from formcache.transforms.media_placeholders import MARKER_ATTRIBUTE


class RenderTarget:
    """Wraps a parsed HTML document carrying placeholder markers."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self._soup = soup

    @classmethod
    def from_markup(cls, markup: str) -> RenderTarget:
        return cls(BeautifulSoup(markup, "html.parser"))

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    def marked_elements(self) -> list[Tag]:
        return self._soup.find_all(attrs={MARKER_ATTRIBUTE: True})

    def grouped_by_source(self) -> dict[str, list[Tag]]:
        """Group marked elements by marker value, in document order."""
        groups: dict[str, list[Tag]] = {}
        for element in self.marked_elements():
            source_key = element.get(MARKER_ATTRIBUTE)
            if not source_key:
                continue
            groups.setdefault(source_key, []).append(element)
        return groups

    def __str__(self) -> str:
        return str(self._soup)
