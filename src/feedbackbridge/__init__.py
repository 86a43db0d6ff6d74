"""
feedbackbridge - Consolidate duplicate feedback and project it into trackers.

Merges duplicate feedback items atomically (votes, comments, provenance) and
mirrors status changes, comments and vote counts into GitHub, ClickUp and
Slack without ever letting a sink failure block the internal change.
"""

__version__ = "1.0.0"

from .bootstrap import create_service, setup_logging

__all__ = ["__version__", "create_service", "setup_logging"]
