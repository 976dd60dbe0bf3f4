"""Concurrent catalog scraper assembling products, price points and vendors."""

from .models import FetchResult, PricePoint, Product, Unit, Vendor, Volume
from .orchestrator import Orchestrator, execute

__version__ = "0.1.0"

__all__ = [
    "FetchResult",
    "Orchestrator",
    "PricePoint",
    "Product",
    "Unit",
    "Vendor",
    "Volume",
    "execute",
]
