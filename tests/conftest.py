"""Shared fixtures: catalog sources, listing payloads and a fake transport."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

import httpx
import pytest

from shelf_scraper.config import ConfigLocator, ConfigRepository, FetchConfig, SourceConfig

ENDPOINT = "https://catalog.example.com/api/products/1300/7080001150488"


class RecordingLogger:
    """Minimal structlog stand-in keeping every event for assertions."""

    def __init__(self, records: list | None = None, context: dict[str, Any] | None = None) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = records if records is not None else []
        self.context = context or {}

    def bind(self, **kwargs: Any) -> "RecordingLogger":
        return RecordingLogger(self.records, {**self.context, **kwargs})

    def _log(self, level: str, event: str, **kwargs: Any) -> None:
        self.records.append((level, event, {**self.context, **kwargs}))

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log("debug", event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log("info", event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log("warning", event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._log("error", event, **kwargs)

    def events(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for _, event, kwargs in self.records if event == name]

    def levels(self, level: str) -> list[str]:
        return [event for lvl, event, _ in self.records if lvl == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


def make_row(code: str, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "title": f"Product {code}",
        "subtitle": f"Description of {code}",
        "vendor": "Tine",
        "isOffer": False,
        "imageGtin": code,
        "pricePerUnit": 24.9,
        "pricePerUnitOriginal": 24.9,
        "measurementValue": 500,
        "measurementType": "g",
        "unit": "kg",
        "storeId": "7080001150488",
        "categoryName": "Meieri",
        "supplierId": 42,
    }
    row.update(overrides)
    return row


def listing_payload(*rows: Mapping[str, Any]) -> dict[str, Any]:
    return {"hits": {"total": len(rows), "hits": [{"_id": str(i), "_source": dict(r)} for i, r in enumerate(rows)]}}


@pytest.fixture
def row_factory() -> Callable[..., dict[str, Any]]:
    return make_row


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    return listing_payload


PageReply = Any  # dict payload, httpx.Response, or an Exception to raise


def build_client(pages: Mapping[int, PageReply], calls: list[httpx.Request] | None = None) -> httpx.Client:
    """httpx client answering ``?page=N`` from ``pages`` (404 for unknown pages)."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        page = int(request.url.params["page"])
        reply = pages.get(page)
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, content=json.dumps(reply).encode("utf-8"))

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def client_factory() -> Callable[..., httpx.Client]:
    return build_client


@pytest.fixture
def sample_source_config() -> Callable[..., SourceConfig]:
    def _builder(**overrides: Any) -> SourceConfig:
        base: dict[str, Any] = {
            "source_name": "Example",
            "retailer_id": "meny",
            "endpoint": ENDPOINT,
            "query_params": {"fieldset": "maximal", "facets": "Category,Allergen"},
            "fetch": FetchConfig(parallelism=1, page_size=2, delay=0.0, pages=[1]),
        }
        base.update(overrides)
        return SourceConfig(**base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("SHELF_SCRAPER_HOME", str(tmp_path))
    return ConfigRepository(ConfigLocator(project_root=tmp_path))
