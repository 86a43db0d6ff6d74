"""
HTTP Adapter - Shared REST client for sink adapters.
"""

from .client import SinkApiClient

__all__ = ["SinkApiClient"]
