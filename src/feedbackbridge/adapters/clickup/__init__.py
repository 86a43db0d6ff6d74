"""
ClickUp Adapter - SinkPort implementation backed by ClickUp tasks.
"""

from .adapter import TaskTrackerSink

__all__ = ["TaskTrackerSink"]
