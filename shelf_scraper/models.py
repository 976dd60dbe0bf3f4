"""Domain entities produced by a catalog run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Unit(str, Enum):
    """Canonical units a quantity is normalised to."""

    WEIGHT = "kg"
    VOLUME = "L"
    COUNT = "pcs"


@dataclass(slots=True, frozen=True)
class Volume:
    unit: Unit
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"unit": self.unit.value, "value": self.value}


@dataclass(slots=True)
class Category:
    name: str
    parent: Category | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "parent": self.parent.to_dict() if self.parent else None}


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class Product:
    """A catalog product keyed by its source-provided code."""

    id: str
    name: str
    description: str
    qty: Volume
    vendor_id: str | None = None
    image_url: str | None = None
    categories: list[Category] = field(default_factory=list)

    def __str__(self) -> str:
        short = self.description
        if len(short) > 50:
            short = short[:47] + "..."
        return f"<Product '{self.name} - {short}' id={self.id}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "qty": self.qty.to_dict(),
            "vendorId": self.vendor_id,
            "imageUrl": self.image_url,
            "categories": [category.to_dict() for category in self.categories],
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())


@dataclass(slots=True)
class PricePoint:
    """Price observed for a product at a retailer on a given day."""

    product_id: str
    retail_id: str
    price: float
    date: datetime
    is_offer: bool = False
    store_id: str | None = None

    def __str__(self) -> str:
        return f"<PricePoint '{self.product_id}' {self.price:f}>"

    def to_dict(self) -> dict[str, Any]:
        stamp = self.date.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        return {
            "productId": self.product_id,
            "retailId": self.retail_id,
            "storeId": self.store_id,
            "price": self.price,
            "date": stamp,
            "isOffer": self.is_offer,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())


@dataclass(slots=True)
class Vendor:
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    def to_json(self) -> str:
        return _dumps(self.to_dict())


@dataclass(slots=True)
class FetchResult:
    """Deduplicated collections assembled by one run."""

    products: list[Product] = field(default_factory=list)
    price_points: list[PricePoint] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)


__all__ = [
    "Category",
    "FetchResult",
    "PricePoint",
    "Product",
    "Unit",
    "Vendor",
    "Volume",
]
