from __future__ import annotations

import time
from threading import Lock, Thread

import pytest

from shelf_scraper.engine import AdmissionController


def test_admission_controller_rejects_invalid_limits() -> None:
    with pytest.raises(ValueError):
        AdmissionController(0)
    with pytest.raises(ValueError):
        AdmissionController(1, delay=-0.1)


def test_admission_controller_blocks_when_pool_is_empty() -> None:
    controller = AdmissionController(2)
    controller.acquire()
    controller.acquire()

    acquired = []
    waiter = Thread(target=lambda: (controller.acquire(), acquired.append(True)), daemon=True)
    waiter.start()
    waiter.join(timeout=0.1)
    assert waiter.is_alive()
    assert not acquired

    controller.release()
    waiter.join(timeout=2)
    assert acquired == [True]


def test_admission_controller_holds_token_for_delay() -> None:
    controller = AdmissionController(1, delay=0.05)
    controller.acquire()
    started = time.monotonic()
    controller.release()
    assert time.monotonic() - started >= 0.05


def test_admission_controller_caps_concurrency() -> None:
    controller = AdmissionController(2)
    lock = Lock()
    state = {"active": 0, "peak": 0}

    def task() -> None:
        with controller:
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.02)
            with lock:
                state["active"] -= 1

    threads = [Thread(target=task) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)
    assert state["peak"] <= 2
    assert state["active"] == 0
