"""Persistent values kept in memory or on disk, with change notifications."""

__all__ = ["backing", "codec", "local", "persistence", "session"]