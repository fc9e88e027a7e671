"""
Module: handlers
Description: Package initialization for trigger handlers.

This package contains the entry points invoked by the platform:
- blob_watcher: Relays new-blob notifications to the downstream endpoint
"""

__all__ = []
