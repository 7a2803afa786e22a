"""Configuration infrastructure."""

from tubevault.infrastructure.config.loader import ConfigLoader, IngestConfig

__all__ = ["ConfigLoader", "IngestConfig"]
