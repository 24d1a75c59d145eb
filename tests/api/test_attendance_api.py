"""
Tests for attendance endpoints.
"""


class TestAttendanceAPI:
    """Test joining, leaving and listing attendees."""

    def _create_event(self, client, headers, payload, **overrides):
        response = client.post("/api/v1/events", json=dict(payload, **overrides), headers=headers)
        assert response.status_code == 201
        return response.json()["id"]

    def test_join_until_full(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload, max_attendees=2)
        _, u1 = register_user("bob")
        _, u2 = register_user("carol")
        _, u3 = register_user("dave")

        assert client.post(f"/api/v1/events/{event_id}/join", headers=u1).status_code == 200
        assert client.post(f"/api/v1/events/{event_id}/join", headers=u2).status_code == 200
        assert client.post(f"/api/v1/events/{event_id}/join", headers=u3).status_code == 400

        event = client.get(f"/api/v1/events/{event_id}").json()
        assert event["current_attendees"] == 2
        assert event["spots_left"] == 0

        assert client.post(f"/api/v1/events/{event_id}/leave", headers=u1).status_code == 200
        assert client.post(f"/api/v1/events/{event_id}/join", headers=u3).status_code == 200

        attendees = client.get(f"/api/v1/events/{event_id}/attendees").json()
        assert [user["username"] for user in attendees] == ["carol", "dave"]
        assert all("hashed_password" not in user for user in attendees)

    def test_repeat_join(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload)
        _, headers = register_user("bob")

        assert client.post(f"/api/v1/events/{event_id}/join", headers=headers).status_code == 200
        assert client.post(f"/api/v1/events/{event_id}/join", headers=headers).status_code == 400
        assert client.get(f"/api/v1/events/{event_id}").json()["current_attendees"] == 1

    def test_leave_when_not_attending(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload)
        _, headers = register_user("bob")

        assert client.post(f"/api/v1/events/{event_id}/leave", headers=headers).status_code == 400

    def test_join_deleted_event(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload)
        client.delete(f"/api/v1/events/{event_id}", headers=organizer)
        _, headers = register_user("bob")

        assert client.post(f"/api/v1/events/{event_id}/join", headers=headers).status_code == 400

    def test_join_requires_auth(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload)

        assert client.post(f"/api/v1/events/{event_id}/join").status_code in (401, 403)

    def test_attendance_status(self, client, register_user, event_payload):
        _, organizer = register_user("alice")
        event_id = self._create_event(client, organizer, event_payload)
        _, headers = register_user("bob")

        status_url = f"/api/v1/events/{event_id}/attendance"
        assert client.get(status_url, headers=headers).json() == {"is_attending": False}

        client.post(f"/api/v1/events/{event_id}/join", headers=headers)
        assert client.get(status_url, headers=headers).json() == {"is_attending": True}

        detail = client.get(f"/api/v1/events/{event_id}", headers=headers).json()
        assert detail["is_attending"] is True

    def test_attendees_of_unknown_event(self, client):
        assert client.get("/api/v1/events/9999/attendees").status_code == 404

    def test_event_ids_beyond_storage_range(self, client, register_user):
        _, headers = register_user("bob")
        base = "/api/v1/events/2147483648"

        assert client.get(base).status_code == 404
        assert client.get(f"{base}/attendees").status_code == 404
        assert client.get(f"{base}/attendance", headers=headers).json() == {"is_attending": False}
        assert client.post(f"{base}/join", headers=headers).status_code == 400
        assert client.post(f"{base}/leave", headers=headers).status_code == 400
        assert client.patch(base, json={"title": "x"}, headers=headers).status_code == 404
        assert client.delete(base, headers=headers).status_code == 404
        assert client.get(f"/api/v1/events/{10**20}").status_code == 404
