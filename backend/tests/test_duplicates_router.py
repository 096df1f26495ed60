"""HTTP tests for the admin duplicate routes."""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import select

from identity_dedup.db.dependencies import get_db
from identity_dedup.main import app
from identity_dedup.models.duplicate_detection_log import DetectionType, DuplicateDetectionLog
from identity_dedup.models.user import User
from identity_dedup.services.audit import DatabaseAuditSink, get_audit_sink
from tests.support import DatabaseTestCase


class DuplicatesRouterTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.original_id = self.add_user("alice@test.com", "Alice", talent_phone="+15551234567")
        self.duplicate_id = self.add_user("alice@test.co", "Alice", talent_phone="+15551234567")
        self.audit_sink = DatabaseAuditSink(self.SessionLocal)

        def override_get_db():
            yield self.db

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_audit_sink] = lambda: self.audit_sink
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_merge_routes_document_error_responses(self) -> None:
        schema = self.client.get("/openapi.json").json()

        responses = schema["paths"]["/admin/duplicates/merge"]["post"]["responses"]
        self.assertIn("404", responses)
        self.assertIn("400", responses)
        self.assertIn("ErrorDetail", schema["components"]["schemas"])

    def test_scan_returns_candidates(self) -> None:
        response = self.client.get("/admin/duplicates", params={"action": "scan"})

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["user_id"], self.duplicate_id)
        self.assertEqual(data[0]["original_user_id"], self.original_id)
        self.assertEqual(data[0]["role"], "TALENT")

    def test_list_and_stats_after_scan(self) -> None:
        self.client.get("/admin/duplicates", params={"action": "scan"})

        listed = self.client.get("/admin/duplicates").json()["data"]
        stats = self.client.get("/admin/duplicates", params={"action": "stats"}).json()["data"]
        pending = self.client.get("/admin/duplicates", params={"action": "pending"}).json()["data"]

        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0]["detection_type"], "EXISTING_SCAN")
        self.assertEqual(stats["total_detections"], 1)
        self.assertEqual(stats["unresolved_detections"], 1)
        self.assertEqual(len(pending), 1)

    def test_unknown_action_is_rejected(self) -> None:
        response = self.client.get("/admin/duplicates", params={"action": "explode"})

        self.assertEqual(response.status_code, 422)

    def test_manual_check_is_logged_as_manual(self) -> None:
        response = self.client.post(
            "/admin/duplicates/check",
            json={"email": "ALICE@test.com", "name": "Someone", "phone": None},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertTrue(data["is_duplicate"])
        self.assertEqual(data["matched_user_id"], self.original_id)
        self.assertEqual(data["reason"], "Exact email match")
        log = self.db.scalar(select(DuplicateDetectionLog))
        self.assertEqual(log.detection_type, DetectionType.MANUAL_CHECK)

    def test_merge_preview_route(self) -> None:
        response = self.client.get(
            "/admin/duplicates/merge/preview",
            params={"primary_user_id": self.original_id, "merged_user_id": self.duplicate_id},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["primary_user"]["email"], "alice@test.com")
        self.assertEqual(data["data_to_merge"]["bookings"], 0)

    def test_merge_preview_unknown_user_is_404(self) -> None:
        response = self.client.get(
            "/admin/duplicates/merge/preview",
            params={"primary_user_id": self.original_id, "merged_user_id": "missing-user"},
        )

        self.assertEqual(response.status_code, 404)

    def test_merge_with_preview_flag_changes_nothing(self) -> None:
        response = self.client.post(
            "/admin/duplicates/merge",
            json={"primary_user_id": self.original_id, "merged_user_id": self.duplicate_id, "preview": True},
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("conflicts", response.json()["data"])
        self.assertIsNotNone(self.db.scalar(select(User).where(User.id == self.duplicate_id)))

    def test_merge_route_merges(self) -> None:
        response = self.client.post(
            "/admin/duplicates/merge",
            json={
                "primary_user_id": self.original_id,
                "merged_user_id": self.duplicate_id,
                "merge_reason": "Reported by user",
                "merged_by_admin_id": "admin-1",
            },
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["merged_user_id"], self.duplicate_id)
        self.assertIsNone(self.db.scalar(select(User).where(User.id == self.duplicate_id)))
        history = self.audit_sink.merge_history(self.original_id)
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].merged_by_admin_id, "admin-1")

    def test_self_merge_is_400(self) -> None:
        response = self.client.post(
            "/admin/duplicates/merge",
            json={"primary_user_id": self.original_id, "merged_user_id": self.original_id},
        )

        self.assertEqual(response.status_code, 400)

    def test_merge_unknown_user_is_404(self) -> None:
        response = self.client.post(
            "/admin/duplicates/merge",
            json={"primary_user_id": "missing-user", "merged_user_id": self.duplicate_id},
        )

        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
