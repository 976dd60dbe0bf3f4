"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ...models import FetchResult, PricePoint, Product, Vendor

Entity = Product | PricePoint | Vendor


class BaseExporter(ABC):
    """Uniform exporter contract for aggregated entities."""

    @abstractmethod
    def export(self, entity: Entity) -> None:
        """Write a single entity."""

    def export_many(self, entities: Iterable[Entity]) -> None:
        for entity in entities:
            self.export(entity)

    def export_result(self, result: FetchResult, include_vendors: bool = False) -> int:
        """Write price points, then products, then optionally vendors."""

        count = 0
        groups: list[Iterable[Entity]] = [result.price_points, result.products]
        if include_vendors:
            groups.append(result.vendors)
        for group in groups:
            for entity in group:
                self.export(entity)
                count += 1
        self.flush()
        return count

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter", "Entity"]
