"""Configuration module for rulelist Core."""

from rulelist_core.config.settings import EditorSettings

__all__ = ["EditorSettings"]
