"""API REST do coletor de taxas."""

from rate_collector.api.app import create_app

__all__ = ["create_app"]
