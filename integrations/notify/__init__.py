"""Notification delivery for scan results."""

from __future__ import annotations

from .webhook import NotificationResult, notify_failures

__all__ = ["NotificationResult", "notify_failures"]
