"""Configuration module - exports the Settings model."""

from ragdesk.config.settings import Settings

__all__ = ["Settings"]
