"""HTTP API for metal price records."""

from bullion.api.app import create_app

__all__ = ["create_app"]
