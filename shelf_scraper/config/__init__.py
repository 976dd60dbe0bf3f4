"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import FetchConfig, GlobalConfig, SourceConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "FetchConfig",
    "GlobalConfig",
    "SourceConfig",
]
