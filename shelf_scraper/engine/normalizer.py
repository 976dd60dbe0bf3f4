"""Row normalisation: catalog records to products, price points and vendors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import RowNormalizationError
from ..models import PricePoint, Product, Unit, Vendor, Volume

# raw unit string -> (canonical unit, divisor)
UNIT_TABLE: dict[str, tuple[Unit, float]] = {
    "kg": (Unit.WEIGHT, 1),
    "g": (Unit.WEIGHT, 1000),
    "hg": (Unit.WEIGHT, 100),
    "l": (Unit.VOLUME, 1),
    "ml": (Unit.VOLUME, 1000),
    "dl": (Unit.VOLUME, 10),
    "stk": (Unit.COUNT, 1),
    "c": (Unit.COUNT, 1),
    "pcs": (Unit.COUNT, 1),
}


class RawRow(BaseModel):
    """One ``_source`` record of a listing hit, as sent on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = ""
    subtitle: str = ""
    vendor: str = ""
    is_offer: bool = Field(default=False, alias="isOffer")
    image_gtin: str = Field(default="", alias="imageGtin")
    price_per_unit: float = Field(default=0.0, alias="pricePerUnit")
    price_per_unit_original: float = Field(default=0.0, alias="pricePerUnitOriginal")
    measurement_value: float = Field(default=0.0, alias="measurementValue")
    measurement_type: str = Field(default="", alias="measurementType")
    unit: str = ""
    store_id: str = Field(default="", alias="storeId")
    category_name: str = Field(default="", alias="categoryName")
    supplier_id: int | None = Field(default=None, alias="supplierId")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @property
    def id(self) -> str:
        return self.image_gtin


@dataclass(slots=True)
class NormalizedRow:
    product: Product
    price_point: PricePoint
    vendor: Vendor | None


def to_volume(value: float, unit: str) -> Volume:
    """Convert a raw quantity into its canonical unit."""

    try:
        canonical, divisor = UNIT_TABLE[unit.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown unit: '{unit}'") from None
    return Volume(unit=canonical, value=value / divisor)


def observation_day(moment: datetime | None = None) -> datetime:
    """Truncate ``moment`` (default: now) to UTC midnight."""

    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def normalize_row(row: RawRow, retailer_id: str, observed_at: datetime | None = None) -> NormalizedRow:
    """Build the entities for ``row`` or raise :class:`RowNormalizationError`."""

    if not row.id:
        raise RowNormalizationError("missing product code", title=row.title)
    try:
        qty = to_volume(row.measurement_value, row.measurement_type)
    except ValueError as exc:
        raise RowNormalizationError(str(exc), title=row.title, product_id=row.id) from exc

    vendor = None
    vendor_id = None
    if row.supplier_id is not None:
        vendor_id = str(row.supplier_id)
        vendor = Vendor(id=vendor_id, name=row.vendor)

    product = Product(
        id=row.id,
        name=row.title,
        description=row.subtitle,
        qty=qty,
        vendor_id=vendor_id,
        image_url=row.image_gtin,
    )
    price_point = PricePoint(
        product_id=row.id,
        retail_id=retailer_id,
        store_id=row.store_id or None,
        price=row.price_per_unit,
        date=observation_day(observed_at),
        is_offer=row.is_offer,
    )
    return NormalizedRow(product=product, price_point=price_point, vendor=vendor)


__all__ = ["NormalizedRow", "RawRow", "UNIT_TABLE", "normalize_row", "observation_day", "to_volume"]
