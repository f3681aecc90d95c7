"""Configuration package for the Satsfolio service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
