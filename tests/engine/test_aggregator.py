from __future__ import annotations

from datetime import datetime, timezone
from queue import Queue

import pytest

from shelf_scraper.engine import FanInAggregator
from shelf_scraper.engine.aggregator import (
    ErrorReceived,
    PageDone,
    PricePointReceived,
    ProductReceived,
    VendorReceived,
)
from shelf_scraper.exceptions import PageFetchError, RowNormalizationError
from shelf_scraper.models import PricePoint, Product, Unit, Vendor, Volume

TODAY = datetime(2026, 10, 17, tzinfo=timezone.utc)


def product(code: str, name: str | None = None) -> Product:
    return Product(id=code, name=name or f"Product {code}", description="", qty=Volume(Unit.COUNT, 1))


def price(code: str, value: float, store: str | None = None) -> PricePoint:
    return PricePoint(product_id=code, retail_id="meny", price=value, date=TODAY, store_id=store)


def test_duplicate_product_overwrites_and_warns_once(recording_logger) -> None:
    aggregator = FanInAggregator([1, 2], logger=recording_logger)
    aggregator.handle(ProductReceived(1, product("B", "first")))
    aggregator.handle(ProductReceived(2, product("B", "second")))

    assert aggregator.products["B"].name == "second"
    warnings = recording_logger.events("duplicate_product")
    assert len(warnings) == 1
    assert warnings[0]["id"] == "B"
    assert aggregator.summary["duplicate_products"] == 1


def test_repeated_overwrites_warn_per_repeat(recording_logger) -> None:
    aggregator = FanInAggregator([1], logger=recording_logger)
    for index in range(4):
        aggregator.handle(ProductReceived(1, product("A", f"v{index}")))
    assert len(recording_logger.events("duplicate_product")) == 3
    assert aggregator.products["A"].name == "v3"


def test_price_points_keyed_by_product_last_wins(recording_logger) -> None:
    aggregator = FanInAggregator([1], logger=recording_logger)
    aggregator.handle(PricePointReceived(1, price("A", 10.0, store="1")))
    aggregator.handle(PricePointReceived(1, price("A", 12.5, store="2")))

    assert len(aggregator.price_points) == 1
    assert aggregator.price_points["A"].price == 12.5
    assert aggregator.price_points["A"].store_id == "2"
    assert len(recording_logger.events("duplicate_price_point")) == 1


def test_vendor_duplicates_are_silent(recording_logger) -> None:
    aggregator = FanInAggregator([1], logger=recording_logger)
    for _ in range(5):
        aggregator.handle(VendorReceived(1, Vendor(id="42", name="Tine")))
    aggregator.handle(VendorReceived(1, Vendor(id="42", name="Tine SA")))

    assert aggregator.vendors == {"42": Vendor(id="42", name="Tine SA")}
    assert recording_logger.levels("warning") == []


def test_errors_are_logged_with_context_and_never_abort(recording_logger) -> None:
    aggregator = FanInAggregator([1, 2], logger=recording_logger)
    aggregator.handle(ErrorReceived(1, RowNormalizationError("unknown unit: 'xyz'", title="Milk", product_id="A")))
    aggregator.handle(ErrorReceived(2, PageFetchError(2, "unexpected status 500")))
    aggregator.handle(ErrorReceived(2, RuntimeError("surprise")))

    row_errors = recording_logger.events("row_failed")
    assert row_errors == [
        {"page": 1, "title": "Milk", "id": "A", "error": "unknown unit: 'xyz' (row='Milk' id='A')"}
    ]
    page_errors = recording_logger.events("page_failed")
    assert [event["page"] for event in page_errors] == [2, 2]
    assert aggregator.summary["rows_failed"] == 1
    assert aggregator.summary["pages_failed"] == 2
    assert not aggregator.complete


def test_page_done_tracks_remaining_set(recording_logger) -> None:
    aggregator = FanInAggregator([1, 2], logger=recording_logger)
    aggregator.handle(PageDone(1))
    assert aggregator.remaining == {2}
    aggregator.handle(PageDone(1))
    aggregator.handle(PageDone(99))
    assert aggregator.remaining == {2}
    assert len(recording_logger.events("unexpected_page_done")) == 2
    aggregator.handle(PageDone(2))
    assert aggregator.complete


def test_run_consumes_until_all_pages_done(recording_logger) -> None:
    inbox: Queue = Queue()
    for event in (
        ProductReceived(1, product("A")),
        PricePointReceived(1, price("A", 9.9)),
        VendorReceived(1, Vendor(id="1", name="Q")),
        PageDone(1),
        ProductReceived(2, product("C")),
        PageDone(2),
    ):
        inbox.put(event)
    aggregator = FanInAggregator([1, 2], inbox=inbox, logger=recording_logger)

    result = aggregator.run()

    assert sorted(p.id for p in result.products) == ["A", "C"]
    assert [pp.product_id for pp in result.price_points] == ["A"]
    assert [v.id for v in result.vendors] == ["1"]
    assert result.summary["pages"] == 2
    assert result.summary["rows"] == 2
    assert inbox.empty()


def test_run_with_no_pages_completes_immediately(recording_logger) -> None:
    result = FanInAggregator([], logger=recording_logger).run()
    assert result.products == [] and result.price_points == [] and result.vendors == []


def test_unknown_event_type_is_rejected(recording_logger) -> None:
    aggregator = FanInAggregator([1], logger=recording_logger)
    with pytest.raises(TypeError):
        aggregator.handle("not an event")  # type: ignore[arg-type]
