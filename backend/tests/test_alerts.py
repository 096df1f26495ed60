"""Unit tests for monitor alert delivery."""

from __future__ import annotations

import json
import unittest
from unittest import mock
from urllib import error as urllib_error

from identity_dedup.services.alerts import (
    AlertDeliveryError,
    EmailAlert,
    SlackWebhookAlert,
    build_alert_sinks,
    dispatch_alert,
)


class _RecordingSink:
    name = "recording"

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, subject: str, message: str) -> None:
        self.sent.append((subject, message))


class _FailingSink:
    name = "failing"

    def send(self, subject: str, message: str) -> None:
        raise AlertDeliveryError("down")


def _response(status: int) -> mock.MagicMock:
    response = mock.MagicMock()
    response.status = status
    response.__enter__.return_value = response
    return response


class SlackWebhookAlertTests(unittest.TestCase):
    def test_posts_json_payload(self) -> None:
        with mock.patch(
            "identity_dedup.services.alerts.urllib_request.urlopen",
            return_value=_response(200),
        ) as urlopen:
            SlackWebhookAlert("https://hooks.example/abc", timeout_seconds=3).send("Subject", "Body")

        request = urlopen.call_args.args[0]
        self.assertEqual(request.full_url, "https://hooks.example/abc")
        self.assertEqual(request.get_method(), "POST")
        self.assertEqual(urlopen.call_args.kwargs["timeout"], 3)
        payload = json.loads(request.data.decode("utf-8"))
        self.assertEqual(payload["text"], "*Subject*\nBody")
        self.assertEqual(payload["username"], "Duplicate Account Monitor")

    def test_network_error_raises_delivery_error(self) -> None:
        with mock.patch(
            "identity_dedup.services.alerts.urllib_request.urlopen",
            side_effect=urllib_error.URLError("unreachable"),
        ):
            with self.assertRaises(AlertDeliveryError):
                SlackWebhookAlert("https://hooks.example/abc").send("Subject", "Body")

    def test_error_status_raises_delivery_error(self) -> None:
        with mock.patch(
            "identity_dedup.services.alerts.urllib_request.urlopen",
            return_value=_response(500),
        ):
            with self.assertRaises(AlertDeliveryError):
                SlackWebhookAlert("https://hooks.example/abc").send("Subject", "Body")


class DispatchTests(unittest.TestCase):
    def test_failing_sink_does_not_stop_others(self) -> None:
        recorder = _RecordingSink()

        with self.assertLogs("identity_dedup.services.alerts", level="ERROR"):
            delivered = dispatch_alert([_FailingSink(), recorder], "Subject", "Body")

        self.assertEqual(delivered, 1)
        self.assertEqual(recorder.sent, [("Subject", "Body")])

    def test_build_alert_sinks_from_options(self) -> None:
        self.assertEqual(build_alert_sinks(email=None, slack_webhook=None), [])

        sinks = build_alert_sinks(email="ops@example.com", slack_webhook="https://hooks.example/abc")

        self.assertEqual([sink.name for sink in sinks], ["slack", "email"])
        self.assertIsInstance(sinks[1], EmailAlert)
        self.assertEqual(sinks[1].address, "ops@example.com")


if __name__ == "__main__":
    unittest.main()
