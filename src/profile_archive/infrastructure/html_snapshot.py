from typing import Awaitable, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from src.profile_archive.application.ports import SnapshotPort

ScreenshotFn = Callable[[], Awaitable[bytes]]

_URL_ATTRS = {"href", "src"}


class HtmlSnapshot(SnapshotPort):
    """Read-only view over rendered page HTML, queried with CSS selectors."""

    def __init__(self, root: Tag, url: str, screenshot_fn: ScreenshotFn | None = None) -> None:
        self.root = root
        self.url = url
        self._screenshot_fn = screenshot_fn

    @classmethod
    def from_html(cls, html: str, url: str, screenshot_fn: ScreenshotFn | None = None) -> "HtmlSnapshot":
        return cls(BeautifulSoup(html, "lxml"), url=url, screenshot_fn=screenshot_fn)

    def query_text(self, selector: str | None = None) -> str | None:
        element = self.root if selector is None else self.root.select_one(selector)
        if element is None:
            return None
        return " ".join(element.get_text(" ").split())

    def query_attr(self, selector: str, attr: str) -> str | None:
        for element in self.root.select(selector):
            value = element.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            if not value:
                continue
            value = value.strip()
            if attr in _URL_ATTRS:
                return urljoin(self.url, value)
            return value
        return None

    def query_all(self, selector: str) -> list["HtmlSnapshot"]:
        return [HtmlSnapshot(element, url=self.url) for element in self.root.select(selector)]

    async def screenshot(self) -> bytes | None:
        if self._screenshot_fn is None:
            return None
        return await self._screenshot_fn()
