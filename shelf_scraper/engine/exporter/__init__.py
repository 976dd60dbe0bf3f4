"""Exporter SPI and implementations."""

from .base import BaseExporter
from .json_exporter import JsonStreamExporter

__all__ = ["BaseExporter", "JsonStreamExporter"]
