"""Worker pool dispatching admitted pages onto a thread pool."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from queue import Queue
from threading import Thread
from typing import Callable

import structlog

from ..exceptions import PageFetchError, RowNormalizationError
from ..pages import Page, PageSource
from .admission import AdmissionController
from .aggregator import (
    ErrorReceived,
    Event,
    PageDone,
    PricePointReceived,
    ProductReceived,
    VendorReceived,
)
from .normalizer import RawRow, normalize_row

FetchPage = Callable[[int, int], list[RawRow]]


class WorkerPool:
    """Fetch and normalise pages under an :class:`AdmissionController`.

    A dispatcher thread walks the page source, takes one admission token per
    page and submits it to the executor. Each page ends with exactly one
    :class:`PageDone` on the inbox, whatever happened while processing it.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        admission: AdmissionController,
        inbox: Queue[Event],
        retailer_id: str,
        observed_at: datetime | None = None,
        logger: structlog.BoundLogger | None = None,
        name: str = "scraper",
    ) -> None:
        self.fetch_page = fetch_page
        self.admission = admission
        self.inbox = inbox
        self.retailer_id = retailer_id
        self.observed_at = observed_at
        self.logger = logger or structlog.get_logger("shelf_scraper.worker")
        self._executor = ThreadPoolExecutor(
            max_workers=admission.parallelism, thread_name_prefix=name
        )
        self._dispatcher: Thread | None = None
        self._name = name

    def start(self, source: PageSource) -> None:
        """Begin dispatching ``source`` in the background and return immediately."""

        if self._dispatcher is not None:
            raise RuntimeError("WorkerPool already started")
        self._dispatcher = Thread(
            target=self._dispatch, args=(source,), name=f"{self._name}-dispatcher", daemon=True
        )
        self._dispatcher.start()

    def shutdown(self, wait: bool = True) -> None:
        if not wait:
            self._executor.shutdown(wait=False, cancel_futures=True)
            return
        if self._dispatcher is not None:
            self._dispatcher.join()
        self._executor.shutdown(wait=True)

    def _dispatch(self, source: PageSource) -> None:
        total = len(source)
        for page in source:
            self.admission.acquire()
            self.logger.info("fetching_page", page=page.number, page_size=page.size, total=total)
            try:
                self._executor.submit(self.process_page, page)
            except RuntimeError as exc:
                # executor already shut down; the page still has to complete
                self.admission.release()
                self.inbox.put(ErrorReceived(page.number, exc))
                self.inbox.put(PageDone(page.number))

    def process_page(self, page: Page) -> None:
        """Fetch, normalise and emit one page, then release its token and signal done."""

        try:
            try:
                rows = self.fetch_page(page.number, page.size)
            except PageFetchError as exc:
                self.inbox.put(ErrorReceived(page.number, exc))
            else:
                self.emit_rows(page.number, rows)
        except Exception as exc:  # noqa: BLE001
            self.inbox.put(ErrorReceived(page.number, exc))
        finally:
            try:
                self.admission.release()
            finally:
                self.inbox.put(PageDone(page.number))

    def emit_rows(self, page: int, rows: list[RawRow]) -> None:
        self.logger.debug("reading_rows", page=page, rows=len(rows))
        for row in rows:
            try:
                normalized = normalize_row(row, self.retailer_id, self.observed_at)
            except RowNormalizationError as exc:
                self.inbox.put(ErrorReceived(page, exc))
                continue
            self.inbox.put(ProductReceived(page, normalized.product))
            self.inbox.put(PricePointReceived(page, normalized.price_point))
            if normalized.vendor is not None:
                self.inbox.put(VendorReceived(page, normalized.vendor))


__all__ = ["WorkerPool"]
