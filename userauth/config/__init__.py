"""Configuration module for the userauth service."""
from .settings import AppConfig, ProviderConfig, load_settings

__all__ = ["AppConfig", "ProviderConfig", "load_settings"]
