"""Engine components orchestrating admit → fetch → normalise → aggregate."""

from .admission import AdmissionController
from .aggregator import FanInAggregator
from .fetcher import PageFetcher
from .normalizer import NormalizedRow, RawRow, normalize_row, to_volume
from .worker_pool import WorkerPool

__all__ = [
    "AdmissionController",
    "FanInAggregator",
    "NormalizedRow",
    "PageFetcher",
    "RawRow",
    "WorkerPool",
    "normalize_row",
    "to_volume",
]
