"""YAML-backed storage for the global settings and catalog sources.

User sources live in ``<home>/data/sources/<slug>.yaml`` and take precedence
over the sources shipped in the package's ``templates`` directory.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml

from .models import GlobalConfig, SourceConfig

HOME_ENV = "SHELF_SCRAPER_HOME"
GLOBAL_CONFIG_FILENAME = "global_config.yaml"
SOURCE_SUFFIXES = (".yaml", ".yml")
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def slugify(name: str) -> str:
    return re.sub(r"[^0-9a-z]+", "-", name.lower()).strip("-")


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as stream:
        data = yaml.safe_load(stream)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a YAML mapping")
    return data


def _dump_yaml(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)


@dataclass(slots=True)
class ConfigLocator:
    """Directory layout under ``$SHELF_SCRAPER_HOME`` (or the project root)."""

    project_root: Path | None = None
    data_dir: Path = field(init=False)
    outputs_dir: Path = field(init=False)
    sources_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        home = os.environ.get(HOME_ENV)
        if home:
            root = Path(home).expanduser()
        else:
            root = self.project_root or Path(__file__).resolve().parents[2]
        self.project_root = root.resolve()
        self.data_dir = self.project_root / "data"
        self.outputs_dir = self.data_dir / "outputs"
        self.sources_dir = self.data_dir / "sources"
        self.logs_dir = self.project_root / "logs"
        for directory in (self.outputs_dir, self.sources_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        """Read ``global_config.yaml``, writing the defaults on first use."""

        if self._global is None:
            path = self.locator.global_config_path()
            if path.exists():
                self._global = GlobalConfig.model_validate(_load_yaml(path))
            else:
                self.save_global_config(
                    GlobalConfig(
                        outputs_dir=self.locator.outputs_dir,
                        sources_dir=self.locator.sources_dir,
                    )
                )
        return self._global

    def save_global_config(self, config: GlobalConfig) -> None:
        _dump_yaml(self.locator.global_config_path(), config.model_dump(mode="json"))
        self._global = config

    def source_path(self, source_name: str) -> Path:
        return self.locator.sources_dir / f"{slugify(source_name)}.yaml"

    def list_source_files(self) -> Iterator[Path]:
        seen: set[str] = set()
        for directory in (self.locator.sources_dir, TEMPLATES_DIR):
            if not directory.is_dir():
                continue
            for path in sorted(directory.iterdir()):
                if path.suffix in SOURCE_SUFFIXES and path.stem not in seen:
                    seen.add(path.stem)
                    yield path

    def list_sources(self) -> list[SourceConfig]:
        return [SourceConfig.model_validate(_load_yaml(path)) for path in self.list_source_files()]

    def load_source(self, source_name: str) -> SourceConfig:
        """Resolve a source by name: user directory first, then built-in templates."""

        candidates = [self.source_path(source_name), TEMPLATES_DIR / self.source_path(source_name).name]
        for path in candidates:
            if path.exists():
                return SourceConfig.model_validate(_load_yaml(path))
        raise FileNotFoundError(f"Source configuration not found: {source_name}")

    def save_source(self, config: SourceConfig) -> Path:
        path = self.source_path(config.source_name)
        _dump_yaml(path, config.model_dump(mode="json"))
        return path

    def delete_source(self, source_name: str) -> None:
        self.source_path(source_name).unlink(missing_ok=True)


__all__ = ["ConfigLocator", "ConfigRepository", "TEMPLATES_DIR", "slugify"]
