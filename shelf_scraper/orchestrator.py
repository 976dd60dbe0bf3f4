"""Run orchestration wiring admission, workers and the fan-in aggregator."""

from __future__ import annotations

import time
from datetime import datetime
from queue import Queue
from typing import Any

import httpx
import structlog

from .config import ConfigRepository, FetchConfig, GlobalConfig, SourceConfig
from .config.loader import slugify
from .engine import AdmissionController, FanInAggregator, PageFetcher, WorkerPool
from .engine.aggregator import Event
from .logging_conf import source_logger
from .models import FetchResult
from .pages import PageSource


def execute(
    source: SourceConfig,
    fetch: FetchConfig | None = None,
    *,
    client: httpx.Client | None = None,
    user_agent: str | None = None,
    observed_at: datetime | None = None,
    logger: structlog.BoundLogger | None = None,
) -> FetchResult:
    """Fetch every configured page of ``source`` and return the merged collections.

    Partial failures never raise: failed pages and rows are logged and the
    run returns whatever was collected.
    """

    fetch = fetch or source.fetch
    logger = logger or structlog.get_logger("shelf_scraper").bind(source=source.source_name)
    page_source = PageSource(fetch.pages, fetch.page_size)
    inbox: Queue[Event] = Queue()
    aggregator = FanInAggregator(page_source.numbers, inbox, logger=logger.bind(component="aggregator"))
    admission = AdmissionController(fetch.parallelism, fetch.delay)

    started = time.monotonic()
    with PageFetcher(
        source, client=client, user_agent=user_agent, logger=logger.bind(component="fetcher")
    ) as fetcher:
        pool = WorkerPool(
            fetcher.fetch,
            admission,
            inbox,
            retailer_id=source.retailer_id,
            observed_at=observed_at,
            logger=logger.bind(component="worker"),
            name=f"scraper-{slugify(source.source_name)}",
        )
        pool.start(page_source)
        try:
            result = aggregator.run()
        except BaseException:
            pool.shutdown(wait=False)
            raise
        pool.shutdown()

    logger.info(
        "all_routines_done",
        elapsed=round(time.monotonic() - started, 3),
        **result.summary,
    )
    return result


class Orchestrator:
    """Resolve sources from configuration and execute runs against them."""

    def __init__(self, config_repository: ConfigRepository, verbose: bool = False) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.verbose = verbose

    def resolve_fetch_config(self, source: SourceConfig, overrides: dict[str, Any] | None = None) -> FetchConfig:
        """Merge CLI-style overrides (``None`` values ignored) into the source's FetchConfig."""

        updates = {key: value for key, value in (overrides or {}).items() if value is not None}
        if not updates:
            return source.fetch
        payload = source.fetch.model_dump()
        payload.update(updates)
        return FetchConfig.model_validate(payload)

    def run_source(
        self,
        source_name: str | None = None,
        overrides: dict[str, Any] | None = None,
        client: httpx.Client | None = None,
    ) -> FetchResult:
        source = self.config_repository.load_source(source_name or self.global_config.default_source)
        fetch = self.resolve_fetch_config(source, overrides)
        log = source_logger(source.source_name, verbose=self.verbose)
        log.info(
            "run_started",
            parallelism=fetch.parallelism,
            page_size=fetch.page_size,
            delay=fetch.delay,
            pages=len(fetch.pages),
        )
        return execute(
            source,
            fetch,
            client=client,
            user_agent=self.global_config.user_agent,
            logger=log,
        )


__all__ = ["Orchestrator", "execute"]
