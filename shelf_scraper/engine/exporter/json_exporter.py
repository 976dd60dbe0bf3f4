"""Pretty-printed JSON exporter writing one document per entity."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

from .base import BaseExporter, Entity


class JsonStreamExporter(BaseExporter):
    """Write each entity as an indented JSON document followed by a newline."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout
        self._owns_stream = False

    @classmethod
    def to_file(cls, path: Path) -> "JsonStreamExporter":
        path.parent.mkdir(parents=True, exist_ok=True)
        exporter = cls(path.open("w", encoding="utf-8"))
        exporter._owns_stream = True
        return exporter

    @classmethod
    def for_run(cls, output_dir: Path, source_name: str, run_tag: str | None = None) -> "JsonStreamExporter":
        """Open ``<source>-<run tag>.json`` inside ``output_dir``."""

        tag = run_tag or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        slug = re.sub(r"[^0-9A-Za-z_-]+", "_", source_name.strip()) or "source"
        return cls.to_file(output_dir / f"{slug}-{tag}.json")

    @property
    def path(self) -> Path | None:
        name = getattr(self.stream, "name", None)
        return Path(name) if self._owns_stream and isinstance(name, str) else None

    def export(self, entity: Entity) -> None:
        self.stream.write(entity.to_json())
        self.stream.write("\n")

    def flush(self) -> None:
        self.stream.flush()

    def close(self) -> None:
        if self._owns_stream:
            self.stream.close()


__all__ = ["JsonStreamExporter"]
