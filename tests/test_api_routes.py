"""
tests/test_api_routes.py

HTTP surface tests with FastAPI's TestClient. Every collaborator is swapped
through dependency overrides: in-memory SQLite, fake fetcher, recording
notifier, fixed admin key.

Coverage
--------
- admin key enforcement
- engine errors mapped to 400 / 404 / 409 / 502
- create → build summary → publish flow, with one publication notice
- public report view hides drafts, shows visible comments
- analytics endpoints
"""

from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from adreport.api.analytics_routes import router as analytics_router
from adreport.api.dependencies import (
    get_converter,
    get_fetcher,
    get_gate,
    get_notifier,
)
from adreport.api.report_routes import admin_router, router as report_router
from adreport.auth import AdminKeyGate
from adreport.config import settings
from adreport.core.currency import CurrencyConverter
from adreport.core.metric_registry import Channel
from adreport.database import get_session
from adreport.notifications.base import NotificationSender

from factories import FakeFetcher, keyword, social

ADMIN_KEY = "test-admin-key"
ADMIN = {"x-admin-key": ADMIN_KEY}

NEW_REPORT = {
    "client_id": "client-1",
    "report_type": "monthly",
    "period_start": "2025-11-01",
    "period_end": "2025-11-30",
    "year": 2025,
    "month": 11,
}


class RecordingSender(NotificationSender):
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def send(self, channel_ref: str, text: str) -> bool:
        self.sent.append((channel_ref, text))
        return True

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            Channel.SOCIAL: [
                social(date(2025, 11, 3), impressions=1000, clicks=20, spend=10.0),
                social(date(2025, 11, 10), impressions=500, clicks=5, spend=4.0),
            ],
            Channel.LOCAL_SEARCH: [
                keyword(date(2025, 11, 3), "cafe", impressions=400, clicks=8,
                        total_cost=8000.0, avg_rank=2.0),
                keyword(date(2025, 11, 4), "cafe", impressions=100, clicks=2,
                        total_cost=1000.0, avg_rank=3.0),
            ],
        }
    )


@pytest.fixture()
def notifier() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def client(session, fetcher, notifier, monkeypatch) -> TestClient:
    monkeypatch.setattr(settings, "telegram_chat_id", "-100")
    app = FastAPI()
    app.include_router(analytics_router)
    app.include_router(admin_router)
    app.include_router(report_router)
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_gate] = lambda: AdminKeyGate(ADMIN_KEY)
    app.dependency_overrides[get_converter] = lambda: CurrencyConverter(rate=1500)
    return TestClient(app)


def _create(client: TestClient, **overrides) -> dict:
    resp = client.post("/admin/reports", json={**NEW_REPORT, **overrides}, headers=ADMIN)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Admin access
# ---------------------------------------------------------------------------


class TestAdminAccess:
    @pytest.mark.parametrize("headers", [{}, {"x-admin-key": "wrong"}])
    def test_admin_routes_need_key(self, client, headers) -> None:
        assert client.get("/admin/reports", headers=headers).status_code == 401
        assert client.post("/admin/reports", json=NEW_REPORT, headers=headers).status_code == 401

    def test_comment_routes_need_key(self, client) -> None:
        report = _create(client)
        resp = client.post(f"/reports/{report['id']}/comment", json={"content": "hi"})
        assert resp.status_code == 401
        assert client.delete(f"/reports/{report['id']}/comment").status_code == 401


# ---------------------------------------------------------------------------
# Report flow
# ---------------------------------------------------------------------------


class TestReportFlow:
    def test_create_and_list(self, client) -> None:
        report = _create(client)
        assert report["status"] == "draft"
        listed = client.get("/admin/reports", params={"client_id": "client-1"}, headers=ADMIN)
        assert listed.json()["count"] == 1

    def test_duplicate_is_conflict(self, client) -> None:
        _create(client)
        resp = client.post("/admin/reports", json=NEW_REPORT, headers=ADMIN)
        assert resp.status_code == 409

    def test_missing_fields_is_bad_request(self, client) -> None:
        resp = client.post("/admin/reports", json={"client_id": "client-1"}, headers=ADMIN)
        assert resp.status_code == 400

    def test_publish_without_summary_is_bad_request(self, client, notifier) -> None:
        report = _create(client)
        resp = client.patch(
            f"/admin/reports/{report['id']}", json={"status": "published"}, headers=ADMIN
        )
        assert resp.status_code == 400
        assert notifier.sent == []

    def test_build_summary_then_publish(self, client, notifier) -> None:
        report = _create(client)

        built = client.post(f"/admin/reports/{report['id']}/build-summary", headers=ADMIN)
        assert built.status_code == 200, built.text
        summary = built.json()["summary_data"]
        assert summary["schema_version"] == "1.0"
        assert summary["previous_start"] == "2025-10-01"
        assert summary["social"]["totals"]["clicks"] == 25

        published = client.patch(
            f"/admin/reports/{report['id']}", json={"status": "published"}, headers=ADMIN
        )
        assert published.status_code == 200
        assert published.json()["published_at"] is not None
        assert len(notifier.sent) == 1
        chat_id, text = notifier.sent[0]
        assert chat_id == "-100"
        assert "client-1" in text

        # Re-publishing changes nothing and announces nothing
        client.patch(
            f"/admin/reports/{report['id']}", json={"status": "published"}, headers=ADMIN
        )
        assert len(notifier.sent) == 1

    def test_cannot_create_archived(self, client) -> None:
        resp = client.post(
            "/admin/reports", json={**NEW_REPORT, "status": "archived"}, headers=ADMIN
        )
        assert resp.status_code == 400
        assert client.get("/admin/reports", headers=ADMIN).json()["count"] == 0

    def test_archived_cannot_reopen(self, client) -> None:
        report = _create(client)
        client.patch(f"/admin/reports/{report['id']}", json={"status": "archived"}, headers=ADMIN)
        resp = client.patch(
            f"/admin/reports/{report['id']}",
            json={"status": "draft", "ai_insights": {"text": "new"}},
            headers=ADMIN,
        )
        assert resp.status_code == 409

        stored = client.get(f"/reports/{report['id']}", headers=ADMIN).json()["report"]
        assert stored["status"] == "archived"
        assert stored["ai_insights"] is None

    def test_summary_and_publish_in_one_request(self, client, notifier) -> None:
        report = _create(client)
        built = client.post(f"/admin/reports/{report['id']}/build-summary", headers=ADMIN)
        summary = built.json()["summary_data"]

        other = _create(client, period_start="2025-10-01", period_end="2025-10-31", month=10)
        resp = client.patch(
            f"/admin/reports/{other['id']}",
            json={"status": "published", "summary_data": summary},
            headers=ADMIN,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "published"
        assert len(notifier.sent) == 1

    def test_unknown_report(self, client) -> None:
        resp = client.patch("/admin/reports/nope", json={"status": "archived"}, headers=ADMIN)
        assert resp.status_code == 404

    def test_build_summary_source_down(self, client, fetcher) -> None:
        report = _create(client)
        fetcher.fail_channel = Channel.SOCIAL
        resp = client.post(f"/admin/reports/{report['id']}/build-summary", headers=ADMIN)
        assert resp.status_code == 502


class TestPublicView:
    def test_draft_hidden_from_public(self, client) -> None:
        report = _create(client)
        assert client.get(f"/reports/{report['id']}").status_code == 404
        assert client.get(f"/reports/{report['id']}", headers=ADMIN).status_code == 200

    def test_published_with_comment(self, client) -> None:
        report = _create(client)
        client.post(f"/admin/reports/{report['id']}/build-summary", headers=ADMIN)
        client.patch(f"/admin/reports/{report['id']}", json={"status": "published"}, headers=ADMIN)

        saved = client.post(
            f"/reports/{report['id']}/comment",
            json={"content": "Great month", "author_role": "Manager"},
            headers=ADMIN,
        )
        assert saved.status_code == 200
        assert saved.json()["author_name"] == "Ad Operations Team"

        view = client.get(f"/reports/{report['id']}").json()
        assert view["report"]["status"] == "published"
        assert view["comment"]["content"] == "Great month"

        assert client.delete(f"/reports/{report['id']}/comment", headers=ADMIN).status_code == 200
        assert client.get(f"/reports/{report['id']}").json()["comment"] is None

    def test_hide_missing_comment(self, client) -> None:
        report = _create(client)
        resp = client.delete(f"/reports/{report['id']}/comment", headers=ADMIN)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class TestAnalytics:
    def test_integrated(self, client) -> None:
        resp = client.get(
            "/analytics/integrated",
            params={
                "client_id": "client-1",
                "start_date": "2025-11-01",
                "end_date": "2025-11-30",
                "granularity": "week",
            },
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["currency"] == "KRW"
        assert [b["bucket_start"] for b in body["social_buckets"]] == ["2025-11-02", "2025-11-09"]
        assert body["channel_comparison"]["total_spend"] == pytest.approx(14 * 1500 + 9000)
        assert body["keywords"][0]["keyword"] == "cafe"

    def test_reversed_range(self, client) -> None:
        resp = client.get(
            "/analytics/integrated",
            params={"client_id": "c", "start_date": "2025-11-30", "end_date": "2025-11-01"},
        )
        assert resp.status_code == 400

    def test_source_down(self, client, fetcher) -> None:
        fetcher.fail_channel = Channel.LOCAL_SEARCH
        resp = client.get(
            "/analytics/integrated",
            params={"client_id": "c", "start_date": "2025-11-01", "end_date": "2025-11-30"},
        )
        assert resp.status_code == 502

    def test_keyword_trend(self, client) -> None:
        resp = client.get(
            "/analytics/keywords",
            params={
                "client_id": "client-1",
                "start_date": "2025-11-01",
                "end_date": "2025-11-30",
                "keyword": "cafe",
            },
        )
        body = resp.json()
        assert body["keywords"][0]["avg_cpc"] == 900
        assert body["keywords"][0]["avg_rank"] == 2.5
        assert [row["date"] for row in body["trend"]] == ["2025-11-03", "2025-11-04"]
