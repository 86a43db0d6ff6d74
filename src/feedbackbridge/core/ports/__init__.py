"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .persistence import FeedbackStorePort, StoreTransaction
from .sink import SinkPort
from .config_provider import (
    ConfigProviderPort,
    AppConfig,
    RuntimeConfig,
    ProjectSyncConfig,
    SinkConfig,
)

__all__ = [
    "FeedbackStorePort",
    "StoreTransaction",
    "SinkPort",
    "ConfigProviderPort",
    "AppConfig",
    "RuntimeConfig",
    "ProjectSyncConfig",
    "SinkConfig",
]
