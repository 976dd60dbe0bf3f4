"""Admission control: one token pool for both concurrency cap and pacing."""

from __future__ import annotations

import time
from threading import BoundedSemaphore


class AdmissionController:
    """Counting semaphore whose tokens are held ``delay`` seconds past use.

    At most ``parallelism`` pages are in flight between :meth:`acquire` and
    :meth:`release`. Because each release first sleeps ``delay``, dispatch is
    bounded by ``parallelism / (delay + task duration)`` as well.
    """

    def __init__(self, parallelism: int, delay: float = 0.0) -> None:
        if parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.parallelism = parallelism
        self.delay = delay
        self._tokens = BoundedSemaphore(parallelism)

    def acquire(self) -> None:
        self._tokens.acquire()

    def release(self) -> None:
        if self.delay:
            time.sleep(self.delay)
        self._tokens.release()

    def __enter__(self) -> "AdmissionController":
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


__all__ = ["AdmissionController"]
