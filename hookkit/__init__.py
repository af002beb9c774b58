"""Translations, broadcast channels, geolocation state and persistent storage."""

__version__ = "0.1.0"
__all__ = ["channel", "geolocation", "i18n", "storage"]