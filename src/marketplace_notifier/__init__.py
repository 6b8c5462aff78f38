"""Marketplace watcher that emails deduplicated new listings per search term."""

__version__ = "0.1.0"
