"""
Trello Adapter - SinkPort implementation backed by Trello cards.
"""

from .adapter import BoardSink

__all__ = ["BoardSink"]
