"""
Sync Module - Projection of feedback changes into external sinks.
"""

from .bulk import BulkOperationRunner, BulkResult, BulkFailure, WorkUnit
from .projector import SyncProjector, ProjectionResult, SinkOutcome
from .dispatcher import DispatchSlot, ProjectionDispatcher

__all__ = [
    "BulkOperationRunner",
    "BulkResult",
    "BulkFailure",
    "WorkUnit",
    "SyncProjector",
    "ProjectionResult",
    "SinkOutcome",
    "DispatchSlot",
    "ProjectionDispatcher",
]
