"""
GitHub Adapter - SinkPort implementation backed by GitHub issues.
"""

from .adapter import IssueTrackerSink

__all__ = ["IssueTrackerSink"]
