"""
Merge Module - Consolidation of duplicate feedback items.
"""

from .coordinator import MergeCoordinator, MergeResult

__all__ = ["MergeCoordinator", "MergeResult"]
