"""
Memory Adapter - In-process implementation of FeedbackStorePort.
"""

from .store import InMemoryFeedbackStore, InMemoryTransaction

__all__ = ["InMemoryFeedbackStore", "InMemoryTransaction"]
