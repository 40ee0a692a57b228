"""Chat webhook delivery of the scan summary.

The payload is a single ``{"text": ...}`` JSON object, which Slack, Google
Chat and Microsoft Teams incoming webhooks all accept. Delivery problems
are reported back to the caller and never raised: a notification that
cannot be sent must not turn a completed scan into a failed one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from tools.codeql.models import ScanSummary

NOTIFY_TIMEOUT = 15


@dataclass
class NotificationResult:
    """Outcome of a notification attempt."""

    sent: bool
    detail: str = ""


def build_payload(summary_text: str) -> dict[str, Any]:
    """Build the webhook body for *summary_text*."""
    return {"text": summary_text}


def send_webhook(
    url: str, payload: dict[str, Any], timeout: float = NOTIFY_TIMEOUT
) -> NotificationResult:
    """POST *payload* as JSON to *url*."""
    try:
        response = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        return NotificationResult(sent=False, detail=f"Webhook request failed: {exc}")

    if 200 <= response.status_code < 300:
        return NotificationResult(sent=True, detail=f"status {response.status_code}")
    return NotificationResult(
        sent=False, detail=f"Webhook returned status {response.status_code}: {response.text[:200]}"
    )


def notify_failures(
    webhook_url: str | None,
    summary: ScanSummary,
    summary_text: str,
) -> NotificationResult:
    """Send *summary_text* to *webhook_url* when the scan found failing repositories."""
    if not webhook_url:
        return NotificationResult(sent=False, detail="No webhook configured")
    if not summary.has_failures:
        return NotificationResult(sent=False, detail="No failing repositories")
    return send_webhook(webhook_url, build_payload(summary_text))
