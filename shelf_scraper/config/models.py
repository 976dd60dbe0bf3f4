"""Pydantic models used across the shelf-scraper configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..pages import parse_page_spec


class FetchConfig(BaseModel):
    """Run parameters: how many pages, how big, how fast."""

    parallelism: int = 1
    page_size: int = 5
    delay: float = Field(default=0.0, description="Seconds a worker holds its token after a page.")
    pages: list[int] = Field(default_factory=lambda: [1])

    @field_validator("pages", mode="before")
    @classmethod
    def _coerce_pages(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_page_spec(value)
        if isinstance(value, int):
            return [value]
        return value

    @model_validator(mode="after")
    def _validate_limits(self) -> "FetchConfig":
        if self.parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")
        if not self.pages:
            raise ValueError("pages cannot be empty")
        if any(page < 1 for page in self.pages):
            raise ValueError("pages must be positive integers")
        if len(set(self.pages)) != len(self.pages):
            raise ValueError("pages must not repeat")
        return self


class SourceConfig(BaseModel):
    """A catalog endpoint together with the parameters used to walk it."""

    source_name: str
    retailer_id: str
    endpoint: str
    query_params: dict[str, str] = Field(default_factory=dict)
    timeout: float = 15.0
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    @model_validator(mode="after")
    def _validate_source(self) -> "SourceConfig":
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError("endpoint must be an http(s) URL")
        if not self.retailer_id:
            raise ValueError("retailer_id cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        return self


class GlobalConfig(BaseModel):
    """Controls shared across sources."""

    user_agent: str | None = None
    default_source: str = "meny"
    outputs_dir: Path = Field(default=Path("data/outputs"))
    sources_dir: Path = Field(default=Path("data/sources"))

    @field_validator("outputs_dir", "sources_dir", mode="before")
    @classmethod
    def _coerce_dirs(cls, value: Any) -> Path:
        return Path(value)


__all__ = ["FetchConfig", "GlobalConfig", "SourceConfig"]
