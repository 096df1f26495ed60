"""Alert delivery for the duplicate monitor."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

logger = logging.getLogger(__name__)

SLACK_USERNAME = "Duplicate Account Monitor"


class AlertDeliveryError(RuntimeError):
    """An alert could not be delivered to its sink."""


class AlertSink(Protocol):
    name: str

    def send(self, subject: str, message: str) -> None: ...


class SlackWebhookAlert:
    """Post alerts to a Slack incoming webhook."""

    name = "slack"

    def __init__(self, webhook_url: str, *, timeout_seconds: int = 10) -> None:
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds

    def send(self, subject: str, message: str) -> None:
        payload = {
            "text": f"*{subject}*\n{message}",
            "username": SLACK_USERNAME,
            "icon_emoji": ":warning:",
        }
        req = urllib_request.Request(
            url=self._webhook_url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib_request.urlopen(req, timeout=self._timeout_seconds) as resp:
                status = resp.status
        except (urllib_error.URLError, urllib_error.HTTPError, TimeoutError) as exc:
            raise AlertDeliveryError(f"Slack webhook request failed: {exc}") from exc
        if status >= 400:
            raise AlertDeliveryError(f"Slack webhook returned HTTP {status}")


class EmailAlert:
    """Hand alerts to the mail pipeline; delivery itself is external."""

    name = "email"

    def __init__(self, address: str) -> None:
        self.address = address

    def send(self, subject: str, message: str) -> None:
        logger.warning("alerts.email to=%s subject=%r message=%r", self.address, subject, message)


def build_alert_sinks(
    *,
    email: str | None,
    slack_webhook: str | None,
    timeout_seconds: int = 10,
) -> list[AlertSink]:
    sinks: list[AlertSink] = []
    if slack_webhook:
        sinks.append(SlackWebhookAlert(slack_webhook, timeout_seconds=timeout_seconds))
    if email:
        sinks.append(EmailAlert(email))
    return sinks


def dispatch_alert(sinks: Iterable[AlertSink], subject: str, message: str) -> int:
    """Send to every sink; failures are logged and never raised."""

    delivered = 0
    for sink in sinks:
        try:
            sink.send(subject, message)
        except Exception:
            logger.exception("alerts.delivery_failed sink=%s subject=%r", sink.name, subject)
            continue
        delivered += 1
    return delivered
