"""
Slack Adapter - SinkPort implementation backed by an incoming webhook.
"""

from .adapter import NotificationSink, WEBHOOK_PREFIX

__all__ = ["NotificationSink", "WEBHOOK_PREFIX"]
