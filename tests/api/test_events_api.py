"""
Tests for Events API endpoints.
"""

from datetime import date, timedelta


class TestCategoriesAndStatsAPI:
    """Test public reference endpoints."""

    def test_categories_seeded(self, client):
        response = client.get("/api/v1/categories")

        assert response.status_code == 200
        slugs = [category["slug"] for category in response.json()]
        assert slugs == ["music", "sports", "food-drink", "arts", "community", "business"]

    def test_stats(self, client, register_user, event_payload):
        _, headers = register_user("alice")
        register_user("bob")
        client.post("/api/v1/events", json=event_payload, headers=headers)

        response = client.get("/api/v1/stats")

        assert response.status_code == 200
        assert response.json() == {
            "active_events": 1,
            "community_members": 2,
            "event_organizers": 1,
            "event_categories": 6,
        }

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["database"] == "healthy"
        assert response.json()["redis"] == "disabled"


class TestEventsAPI:
    """Test event catalog endpoints."""

    def test_create_event(self, client, register_user, event_payload):
        user, headers = register_user("alice")

        response = client.post("/api/v1/events", json=event_payload, headers=headers)

        assert response.status_code == 201
        body = response.json()
        assert body["organizer_id"] == user["id"]
        assert body["current_attendees"] == 0
        assert body["is_active"] is True
        assert "X-Process-Time" in response.headers

    def test_create_requires_auth(self, client, event_payload):
        response = client.post("/api/v1/events", json=event_payload)
        assert response.status_code in (401, 403)

    def test_create_unknown_category(self, client, register_user, event_payload):
        _, headers = register_user("alice")

        response = client.post("/api/v1/events", json=dict(event_payload, category_id=999), headers=headers)
        assert response.status_code == 400

    def test_create_invalid_payload(self, client, register_user, event_payload):
        _, headers = register_user("alice")

        bad_time = client.post("/api/v1/events", json=dict(event_payload, event_time="25:00"), headers=headers)
        assert bad_time.status_code == 400

        bad_capacity = client.post("/api/v1/events", json=dict(event_payload, max_attendees=0), headers=headers)
        assert bad_capacity.status_code == 400

        missing_title = {key: value for key, value in event_payload.items() if key != "title"}
        assert client.post("/api/v1/events", json=missing_title, headers=headers).status_code == 400

    def test_get_event_details(self, client, register_user, event_payload):
        user, headers = register_user("alice")
        event_id = client.post("/api/v1/events", json=event_payload, headers=headers).json()["id"]

        response = client.get(f"/api/v1/events/{event_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["category"]["slug"] == "music"
        assert body["organizer"]["id"] == user["id"]
        assert "hashed_password" not in body["organizer"]
        assert body["spots_left"] == 2
        assert body["is_attending"] is None

    def test_get_missing_event(self, client):
        response = client.get("/api/v1/events/9999")

        assert response.status_code == 404
        assert response.json()["error_message"] == "Event not found"

    def test_list_events_with_filters(self, client, register_user, event_payload):
        _, headers = register_user("alice")
        categories = {c["slug"]: c["id"] for c in client.get("/api/v1/categories").json()}
        jazz = client.post("/api/v1/events", json=event_payload, headers=headers).json()
        client.post(
            "/api/v1/events",
            json=dict(event_payload, title="Five a side", description="Football",
                      location="Riverside Pitch", category_id=categories["sports"]),
            headers=headers
        )

        assert len(client.get("/api/v1/events").json()) == 2

        by_category = client.get("/api/v1/events", params={"category": "music"}).json()
        assert [event["id"] for event in by_category] == [jazz["id"]]

        by_search = client.get("/api/v1/events", params={"search": "JAZZ"}).json()
        assert [event["id"] for event in by_search] == [jazz["id"]]

        by_location = client.get("/api/v1/events", params={"location": "riverside"}).json()
        assert [event["title"] for event in by_location] == ["Five a side"]

    def test_list_events_date_filter(self, client, register_user, event_payload):
        _, headers = register_user("alice")
        today = client.post(
            "/api/v1/events", json=dict(event_payload, event_date=date.today().isoformat()), headers=headers
        ).json()
        client.post(
            "/api/v1/events",
            json=dict(event_payload, event_date=(date.today() + timedelta(days=30)).isoformat()),
            headers=headers
        )

        response = client.get("/api/v1/events", params={"date": "today"})
        assert [event["id"] for event in response.json()] == [today["id"]]

        assert len(client.get("/api/v1/events", params={"date": "all-time"}).json()) == 2
        assert client.get("/api/v1/events", params={"date": "someday"}).status_code == 400

    def test_list_marks_attendance_for_signed_in_user(self, client, register_user, event_payload):
        _, organizer_headers = register_user("alice")
        _, headers = register_user("bob")
        event_id = client.post("/api/v1/events", json=event_payload, headers=organizer_headers).json()["id"]
        client.post(f"/api/v1/events/{event_id}/join", headers=headers)

        mine = client.get("/api/v1/events", headers=headers).json()
        assert mine[0]["is_attending"] is True

        theirs = client.get("/api/v1/events", headers=organizer_headers).json()
        assert theirs[0]["is_attending"] is False

    def test_update_event(self, client, register_user, event_payload):
        _, headers = register_user("alice")
        event_id = client.post("/api/v1/events", json=event_payload, headers=headers).json()["id"]

        response = client.patch(f"/api/v1/events/{event_id}", json={"title": "Late Jazz"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Late Jazz"
        assert response.json()["location"] == event_payload["location"]

    def test_update_by_non_organizer(self, client, register_user, event_payload):
        _, organizer_headers = register_user("alice")
        _, headers = register_user("bob")
        event_id = client.post("/api/v1/events", json=event_payload, headers=organizer_headers).json()["id"]

        response = client.patch(f"/api/v1/events/{event_id}", json={"title": "Mine now"}, headers=headers)

        assert response.status_code == 404
        assert client.get(f"/api/v1/events/{event_id}").json()["title"] == "Jazz Night"

    def test_update_capacity_below_attendees(self, client, register_user, event_payload):
        _, organizer_headers = register_user("alice")
        _, bob = register_user("bob")
        _, carol = register_user("carol")
        event_id = client.post("/api/v1/events", json=event_payload, headers=organizer_headers).json()["id"]
        client.post(f"/api/v1/events/{event_id}/join", headers=bob)
        client.post(f"/api/v1/events/{event_id}/join", headers=carol)

        response = client.patch(
            f"/api/v1/events/{event_id}", json={"max_attendees": 1}, headers=organizer_headers
        )
        assert response.status_code == 400

    def test_delete_event(self, client, register_user, event_payload):
        _, headers = register_user("alice")
        event_id = client.post("/api/v1/events", json=event_payload, headers=headers).json()["id"]

        response = client.delete(f"/api/v1/events/{event_id}", headers=headers)
        assert response.status_code == 200

        assert client.get("/api/v1/events").json() == []
        kept = client.get(f"/api/v1/events/{event_id}")
        assert kept.status_code == 200
        assert kept.json()["is_active"] is False

        hidden = client.get(f"/api/v1/events/{event_id}", params={"include_inactive": "false"})
        assert hidden.status_code == 404

    def test_delete_by_non_organizer(self, client, register_user, event_payload):
        _, organizer_headers = register_user("alice")
        _, headers = register_user("bob")
        event_id = client.post("/api/v1/events", json=event_payload, headers=organizer_headers).json()["id"]

        assert client.delete(f"/api/v1/events/{event_id}", headers=headers).status_code == 404
        assert client.get(f"/api/v1/events/{event_id}").json()["is_active"] is True
