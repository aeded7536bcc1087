"""
Integration tests for the HTTP API.

Tests the full request/response cycle, including the mapping of domain
errors to status codes.
"""

from uuid import uuid4

from fastapi.testclient import TestClient

from video_exchange.infrastructure.db.repositories.notification_repository import (
    NotificationRepository,
)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()

    def test_health_endpoint(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAuth:

    async def test_protected_route_no_auth(self, async_client):
        response = await async_client.get("/api/exchanges")
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authorization token"

    async def test_protected_route_invalid_token(self, async_client):
        response = await async_client.get(
            "/api/exchanges", headers={"Authorization": "Bearer invalid.token.here"}
        )
        assert response.status_code == 401


class TestExchangeEndpoints:

    async def test_request_and_accept(self, async_client, auth_headers, session, alice, bob):
        response = await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )
        assert response.status_code == 201
        exchange = response.json()
        assert exchange["status"] == "pending"
        assert exchange["role"] == "initiator"

        response = await async_client.patch(
            f"/api/exchanges/{exchange['id']}",
            json={"status": "accepted", "video_id": str(alice.video.id)},
            headers=auth_headers(bob.user),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

        # Background notifications ran after each response
        notifications = NotificationRepository(session)
        assert len(await notifications.list_for_user(bob.id)) == 1
        assert len(await notifications.list_for_user(alice.id)) == 1

    async def test_duplicate_pending_is_409(self, async_client, auth_headers, alice, bob):
        body = {"username": "bob", "video_id": str(bob.video.id)}
        await async_client.post("/api/exchanges", json=body, headers=auth_headers(alice.user))

        response = await async_client.post("/api/exchanges", json=body, headers=auth_headers(alice.user))

        assert response.status_code == 409
        assert response.json()["category"] == "conflict"

    async def test_settled_exchange_is_409_state_conflict(self, async_client, auth_headers, alice, bob):
        created = await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )
        url = f"/api/exchanges/{created.json()['id']}"
        await async_client.patch(url, json={"status": "rejected"}, headers=auth_headers(bob.user))

        response = await async_client.patch(url, json={"status": "accepted"}, headers=auth_headers(bob.user))

        assert response.status_code == 409
        assert response.json()["category"] == "state_conflict"

    async def test_non_party_is_403(self, async_client, auth_headers, make_user, alice, bob):
        carol = await make_user("carol")
        created = await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )

        response = await async_client.get(
            f"/api/exchanges/{created.json()['id']}", headers=auth_headers(carol)
        )

        assert response.status_code == 403

    async def test_unknown_exchange_is_404(self, async_client, auth_headers, alice):
        response = await async_client.get(f"/api/exchanges/{uuid4()}", headers=auth_headers(alice.user))
        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "exchange"

    async def test_invalid_status_is_400(self, async_client, auth_headers, alice, bob):
        created = await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )
        response = await async_client.patch(
            f"/api/exchanges/{created.json()['id']}",
            json={"status": "pending"},
            headers=auth_headers(bob.user),
        )
        assert response.status_code == 400

    async def test_cancel(self, async_client, auth_headers, alice, bob):
        created = await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )

        response = await async_client.delete(
            f"/api/exchanges?video_id={bob.video.id}", headers=auth_headers(alice.user)
        )

        assert response.status_code == 204
        listed = await async_client.get("/api/exchanges", headers=auth_headers(alice.user))
        assert [e["id"] for e in listed.json()] == []
        assert created.status_code == 201


class TestUploadEndpoint:

    async def test_upload_schedules_moderation(self, async_client, auth_headers, mock_moderation, make_user):
        user = await make_user("alice")

        response = await async_client.post(
            "/api/users/me/videos",
            data={
                "title": "Mountain sunrise",
                "description": "Sunrise over the ridge, filmed in one take.",
                "category": "travel_adventure",
                "keywords": ["sunrise", "mountains"],
            },
            files={"file": ("sunrise.mp4", b"x" * 300, "video/mp4")},
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["is_owner"] is True
        assert body["keywords"] == ["sunrise", "mountains"]
        mock_moderation.submit_video.assert_awaited_once()

    async def test_quota_is_409(self, async_client, auth_headers, make_user):
        user = await make_user("alice")

        response = await async_client.post(
            "/api/users/me/videos",
            data={
                "title": "Mountain sunrise",
                "description": "Sunrise over the ridge, filmed in one take.",
                "category": "travel_adventure",
                "keywords": ["sunrise"],
            },
            files={"file": ("sunrise.mp4", b"x" * 5000, "video/mp4")},
            headers=auth_headers(user),
        )

        assert response.status_code == 409
        assert response.json()["details"]["quota"] == "video_max_size"


class TestVideoViews:

    async def test_visits_count_once_per_address(self, async_client, auth_headers, alice, bob):
        url = f"/api/videos/{alice.video.id}"
        forwarded = {**auth_headers(bob.user), "X-Forwarded-For": "203.0.113.5, 10.0.0.1"}

        first = await async_client.get(url, headers=forwarded)
        again = await async_client.get(url, headers=forwarded)
        direct = await async_client.get(url, headers=auth_headers(bob.user))

        assert first.status_code == 200
        assert first.json()["views"] == 1
        assert again.json()["views"] == 1
        assert direct.json()["views"] == 2

    async def test_owner_visit_is_not_a_view(self, async_client, auth_headers, alice):
        response = await async_client.get(f"/api/videos/{alice.video.id}", headers=auth_headers(alice.user))

        assert response.status_code == 200
        assert response.json()["views"] == 0

    async def test_unknown_video_is_404(self, async_client, auth_headers, alice):
        response = await async_client.get(f"/api/videos/{uuid4()}", headers=auth_headers(alice.user))
        assert response.status_code == 404


class TestModerationCallback:

    async def test_callback_flags_video(self, async_client, session, alice):
        response = await async_client.post(
            "/api/videos/moderation/callback",
            json={
                "media": {"uri": f"{alice.video.id}.mp4"},
                "data": {"status": "finished", "frames": [{"weapon": {"classes": {"weapon": 0.9}}}]},
            },
        )

        assert response.status_code == 204
        await session.refresh(alice.video)
        assert alice.video.is_sensitive_content is True


class TestSubscriptionEndpoints:

    async def test_plans_are_public(self, async_client, plans):
        response = await async_client.get("/api/plans")
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["basic", "advanced", "premium"]

    async def test_billing_outage_is_503(self, async_client, auth_headers, mock_billing, make_user):
        from video_exchange.infrastructure.exceptions import BillingUnavailableError

        mock_billing.get_subscription.side_effect = BillingUnavailableError("Stripe is down")
        user = await make_user("alice", plan="advanced", subscription_id="sub_123")

        response = await async_client.get("/api/subscriptions/me", headers=auth_headers(user))

        assert response.status_code == 503

    async def test_declined_card_passes_status_through(self, async_client, auth_headers, mock_billing, make_user):
        from video_exchange.infrastructure.exceptions import PaymentProviderError

        mock_billing.create_subscription.side_effect = PaymentProviderError(
            "Your card was declined.", status_code=402, code="card_declined"
        )
        user = await make_user("alice")

        response = await async_client.post(
            "/api/subscriptions",
            json={"plan": "premium", "payment_method_id": "pm_declined"},
            headers=auth_headers(user),
        )

        assert response.status_code == 402
        assert response.json()["details"]["payment_gateway"] is True

    async def test_statistics_need_a_plan_with_stats(self, async_client, auth_headers, make_user):
        user = await make_user("alice")
        response = await async_client.get("/api/statistics", headers=auth_headers(user))
        assert response.status_code == 403

        premium = await make_user("bob", plan="premium")
        response = await async_client.get("/api/statistics", headers=auth_headers(premium))
        assert response.status_code == 200
        assert response.json()["exchange_limit"] == 0

    async def test_video_statistics(self, async_client, auth_headers, make_user, make_video, alice):
        user = await make_user("carol", plan="premium")
        video = await make_video(user, title="Carol at the market")
        url = f"/api/statistics/videos/{video.id}"

        response = await async_client.get(f"{url}?type=views", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json() == {"id": str(video.id), "title": "Carol at the market", "views": 0}

        response = await async_client.get(url, headers=auth_headers(user))
        assert response.json()["exchanges_count"] == 0
        assert "views" not in response.json()

        response = await async_client.get(
            f"/api/statistics/videos/{alice.video.id}", headers=auth_headers(user)
        )
        assert response.status_code == 404

        response = await async_client.get(f"{url}?type=likes", headers=auth_headers(user))
        assert response.status_code == 422

    async def test_video_statistics_need_a_plan_with_stats(self, async_client, auth_headers, alice):
        response = await async_client.get(
            f"/api/statistics/videos/{alice.video.id}", headers=auth_headers(alice.user)
        )
        assert response.status_code == 403


class TestNotificationEndpoints:

    async def test_list_and_mark_read(self, async_client, auth_headers, alice, bob):
        await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )

        response = await async_client.get("/api/notifications?unread=true", headers=auth_headers(bob.user))
        assert response.status_code == 200
        notifications = response.json()
        assert [n["type"] for n in notifications] == ["exchange_requested"]

        response = await async_client.patch(
            f"/api/notifications/{notifications[0]['id']}/read", headers=auth_headers(bob.user)
        )
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        response = await async_client.get("/api/notifications?unread=true", headers=auth_headers(bob.user))
        assert response.json() == []

    async def test_other_users_notification_is_404(self, async_client, auth_headers, alice, bob):
        await async_client.post(
            "/api/exchanges",
            json={"username": "bob", "video_id": str(bob.video.id)},
            headers=auth_headers(alice.user),
        )
        listed = await async_client.get("/api/notifications", headers=auth_headers(bob.user))

        response = await async_client.patch(
            f"/api/notifications/{listed.json()[0]['id']}/read", headers=auth_headers(alice.user)
        )

        assert response.status_code == 404


class TestUserAndReportEndpoints:

    async def test_me(self, async_client, auth_headers, alice):
        response = await async_client.get("/api/users/me", headers=auth_headers(alice.user))
        assert response.status_code == 200
        assert response.json()["videos"] == [str(alice.video.id)]

    async def test_report_video(self, async_client, auth_headers, alice, bob):
        response = await async_client.post(
            f"/api/videos/{bob.video.id}/report",
            json={"reason": "duplicate_video"},
            headers=auth_headers(alice.user),
        )
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    async def test_other_reason_needs_a_description(self, async_client, auth_headers, alice, bob):
        response = await async_client.post(
            f"/api/videos/{bob.video.id}/report",
            json={"reason": "other"},
            headers=auth_headers(alice.user),
        )
        assert response.status_code == 400

    async def test_delete_me(self, async_client, auth_headers, alice):
        response = await async_client.delete("/api/users/me", headers=auth_headers(alice.user))
        assert response.status_code == 204

        response = await async_client.get("/api/users/me", headers=auth_headers(alice.user))
        assert response.status_code == 404
