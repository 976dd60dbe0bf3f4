"""Page source helpers: the ordered set of listing pages a run covers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(slots=True, frozen=True)
class Page:
    """One unit of paginated retrieval."""

    number: int
    size: int


def page_range(start: int, end: int) -> list[int]:
    """Return pages ``start..end`` inclusive."""

    if start < 1 or end < start:
        raise ValueError(f"Invalid page range {start}-{end}")
    return list(range(start, end + 1))


def parse_page_spec(spec: str) -> list[int]:
    """Parse ``"1-3,7,9-10"`` into ``[1, 2, 3, 7, 9, 10]``.

    Order of first appearance is kept; repeated pages are rejected because
    each page must complete exactly once.
    """

    pages: list[int] = []
    for chunk in spec.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        low, sep, high = chunk.partition("-")
        try:
            if sep:
                pages.extend(page_range(int(low), int(high)))
            else:
                pages.append(int(low))
        except ValueError as exc:
            raise ValueError(f"Invalid page spec '{spec}': {exc}") from exc
    if not pages:
        raise ValueError(f"Page spec '{spec}' selects no pages")
    return pages


class PageSource:
    """Finite ordered sequence of pages sharing one page size."""

    def __init__(self, pages: Iterable[int], page_size: int) -> None:
        self.numbers = list(pages)
        self.page_size = page_size

    def __iter__(self) -> Iterator[Page]:
        for number in self.numbers:
            yield Page(number, self.page_size)

    def __len__(self) -> int:
        return len(self.numbers)


__all__ = ["Page", "PageSource", "page_range", "parse_page_spec"]
