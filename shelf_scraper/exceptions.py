"""Error types raised while fetching and normalising catalog pages."""

from __future__ import annotations


class ShelfScraperError(Exception):
    """Base class for scraper failures."""


class PageFetchError(ShelfScraperError):
    """A page could not be retrieved or decoded; only that page is lost."""

    def __init__(self, page: int, message: str) -> None:
        super().__init__(message)
        self.page = page

    def __str__(self) -> str:
        return f"page {self.page}: {self.args[0]}"


class RowNormalizationError(ShelfScraperError):
    """A single row could not be converted into domain entities."""

    def __init__(self, message: str, title: str = "", product_id: str = "") -> None:
        super().__init__(message)
        self.title = title
        self.product_id = product_id

    def __str__(self) -> str:
        return f"{self.args[0]} (row='{self.title}' id='{self.product_id}')"


__all__ = ["PageFetchError", "RowNormalizationError", "ShelfScraperError"]
