"""Fan-in aggregation of worker output into deduplicated collections."""

from __future__ import annotations

from dataclasses import dataclass
from queue import Queue
from typing import Iterable, Union

import structlog

from ..exceptions import PageFetchError, RowNormalizationError
from ..models import FetchResult, PricePoint, Product, Vendor


@dataclass(slots=True, frozen=True)
class ProductReceived:
    page: int
    product: Product


@dataclass(slots=True, frozen=True)
class PricePointReceived:
    page: int
    price_point: PricePoint


@dataclass(slots=True, frozen=True)
class VendorReceived:
    page: int
    vendor: Vendor


@dataclass(slots=True, frozen=True)
class ErrorReceived:
    page: int
    error: Exception


@dataclass(slots=True, frozen=True)
class PageDone:
    page: int


Event = Union[ProductReceived, PricePointReceived, VendorReceived, ErrorReceived, PageDone]


class FanInAggregator:
    """Single consumer owning the result maps and the remaining-pages set.

    Workers only ever ``put`` events on :attr:`inbox`; every mutation of the
    maps happens on the thread running :meth:`run`.
    """

    def __init__(
        self,
        pages: Iterable[int],
        inbox: Queue[Event] | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.inbox: Queue[Event] = inbox if inbox is not None else Queue()
        self.logger = logger or structlog.get_logger("shelf_scraper.aggregator")
        self.remaining: set[int] = set(pages)
        self.products: dict[str, Product] = {}
        self.price_points: dict[str, PricePoint] = {}
        self.vendors: dict[str, Vendor] = {}
        self.summary: dict[str, int] = {
            "pages": len(self.remaining),
            "pages_failed": 0,
            "rows": 0,
            "rows_failed": 0,
            "duplicate_products": 0,
            "duplicate_price_points": 0,
        }

    @property
    def complete(self) -> bool:
        return not self.remaining

    def run(self) -> FetchResult:
        """Consume events until every page has signalled done."""

        self.logger.info("collector_started", pages=len(self.remaining))
        while self.remaining:
            self.handle(self.inbox.get())
        self.logger.info(
            "collector_finished",
            products=len(self.products),
            price_points=len(self.price_points),
            vendors=len(self.vendors),
        )
        return self.result()

    def handle(self, event: Event) -> None:
        if isinstance(event, ProductReceived):
            product = event.product
            self.summary["rows"] += 1
            if product.id in self.products:
                self.summary["duplicate_products"] += 1
                self.logger.warning(
                    "duplicate_product", id=product.id, name=product.name, page=event.page
                )
            self.products[product.id] = product
        elif isinstance(event, PricePointReceived):
            price_point = event.price_point
            # keyed by product alone: a later store's price replaces an earlier one
            if price_point.product_id in self.price_points:
                self.summary["duplicate_price_points"] += 1
                self.logger.warning(
                    "duplicate_price_point", id=price_point.product_id, page=event.page
                )
            self.price_points[price_point.product_id] = price_point
        elif isinstance(event, VendorReceived):
            self.vendors[event.vendor.id] = event.vendor
        elif isinstance(event, ErrorReceived):
            self._log_error(event)
        elif isinstance(event, PageDone):
            if event.page in self.remaining:
                self.remaining.discard(event.page)
            else:
                self.logger.debug("unexpected_page_done", page=event.page)
        else:
            raise TypeError(f"Unsupported event: {event!r}")

    def result(self) -> FetchResult:
        return FetchResult(
            products=list(self.products.values()),
            price_points=list(self.price_points.values()),
            vendors=list(self.vendors.values()),
            summary=dict(self.summary),
        )

    def _log_error(self, event: ErrorReceived) -> None:
        error = event.error
        if isinstance(error, RowNormalizationError):
            self.summary["rows_failed"] += 1
            self.logger.error(
                "row_failed",
                page=event.page,
                title=error.title,
                id=error.product_id,
                error=str(error),
            )
        elif isinstance(error, PageFetchError):
            self.summary["pages_failed"] += 1
            self.logger.error("page_failed", page=error.page, error=str(error))
        else:
            self.summary["pages_failed"] += 1
            self.logger.error("page_failed", page=event.page, error=repr(error))


__all__ = [
    "ErrorReceived",
    "Event",
    "FanInAggregator",
    "PageDone",
    "PricePointReceived",
    "ProductReceived",
    "VendorReceived",
]
