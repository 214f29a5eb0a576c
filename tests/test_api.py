"""
HTTP surface: status codes per scheduling outcome and the CRUD routes.
"""

import logging

from tests.factories import FRIDAY, MONDAY, SATURDAY, appointment_fields


def _create(client, day=MONDAY, start="09:00", duration=60, **extra):
    return client.post("/api/appointments", json=appointment_fields(day, start, duration, **extra))


class TestAppointmentsApi:

    def test_create_returns_201(self, client):
        response = _create(client)

        assert response.status_code == 201
        body = response.json()
        assert body["outcome"] == "accepted"
        assert body["appointment"]["end_time"] == "10:00"
        assert body["is_within_work_hours"] is True

    def test_weekend_returns_428_then_201_with_override(self, client):
        response = _create(client, SATURDAY, "10:00")

        assert response.status_code == 428
        body = response.json()
        assert body["requires_confirmation"] is True
        assert body["day_type"] == "SÁBADO"
        assert body["suggested_date"] == MONDAY.isoformat()

        response = _create(client, SATURDAY, "10:00", allow_weekend_override=True)
        assert response.status_code == 201
        assert response.json()["is_overtime"] is True

    def test_conflict_returns_409_with_free_slots(self, client):
        _create(client, title="Planning")

        response = _create(client, start="09:30", duration=30)

        assert response.status_code == 409
        body = response.json()
        assert body["reason"] == "time_conflict"
        assert body["conflicts"][0]["title"] == "Planning"
        assert body["free_slots"]

    def test_lunch_returns_409(self, client):
        response = _create(client, start="12:30", duration=30)

        assert response.status_code == 409
        assert response.json()["violation"] == "lunch_break"
        assert response.json()["suggested_time"] == "13:00"

    def test_malformed_time_returns_400(self, client):
        response = _create(client, start="9h")

        assert response.status_code == 400

    def test_non_positive_duration_returns_422(self, client):
        response = _create(client, duration=0)

        assert response.status_code == 422

    def test_validate_endpoint(self, client):
        response = client.post("/api/appointments/validate", json={
            "date": MONDAY.isoformat(), "start_time": "18:30", "duration_minutes": 60,
        })

        assert response.status_code == 200
        assert response.json()["violation"] == "after_hours"
        assert response.json()["is_overtime"] is True

    def test_conflicts_endpoint(self, client):
        created = _create(client).json()["appointment"]

        response = client.post("/api/appointments/conflicts", json={
            "date": MONDAY.isoformat(), "start_time": "09:15", "duration_minutes": 30,
        })
        assert response.json()["has_conflicts"] is True
        assert response.json()["conflicts"][0]["id"] == created["id"]

        response = client.post("/api/appointments/conflicts", json={
            "date": MONDAY.isoformat(), "start_time": "09:15", "duration_minutes": 30,
            "exclude_id": created["id"],
        })
        assert response.json()["has_conflicts"] is False

    def test_get_patch_delete(self, client):
        appointment_id = _create(client).json()["appointment"]["id"]

        assert client.get(f"/api/appointments/{appointment_id}").status_code == 200

        response = client.patch(f"/api/appointments/{appointment_id}", json={"start_time": "14:00"})
        assert response.status_code == 200
        assert response.json()["appointment"]["reschedule_count"] == 1

        assert client.delete(f"/api/appointments/{appointment_id}").status_code == 204
        assert client.get(f"/api/appointments/{appointment_id}").status_code == 404
        assert client.delete(f"/api/appointments/{appointment_id}").status_code == 404

    def test_list_by_date(self, client):
        _create(client)
        _create(client, FRIDAY, "09:00")

        response = client.get("/api/appointments", params={"date": MONDAY.isoformat()})

        assert response.json()["total_count"] == 1


class TestRecurringApi:

    def _series(self, client, **overrides):
        payload = appointment_fields(FRIDAY, "09:00", 60)
        payload.update(recurrence_pattern="daily", recurrence_end_count=7)
        payload.update(overrides)
        return client.post("/api/appointments/recurring", json=payload)

    def test_create_get_delete_series(self, client):
        response = self._series(client)

        assert response.status_code == 201
        body = response.json()
        assert body["created_count"] == 7
        assert body["skipped_count"] == 0
        series_id = body["recurring_task_id"]

        response = client.get(f"/api/appointments/recurring/{series_id}")
        assert len(response.json()["instances"]) == 7

        response = client.delete(f"/api/appointments/recurring/{series_id}")
        assert response.json()["deleted_count"] == 8
        assert client.get(f"/api/appointments/recurring/{series_id}").status_code == 404

    def test_invalid_recurrence_returns_400(self, client):
        response = self._series(client, recurrence_end_date="2025-08-20")

        assert response.status_code == 400

    def test_update_series(self, client):
        series_id = self._series(client).json()["recurring_task_id"]

        response = client.patch(f"/api/appointments/recurring/{series_id}", json={"title": "Daily sync"})

        assert response.status_code == 200
        assert response.json()["accepted_count"] == 7

    def test_delete_instance(self, client):
        body = self._series(client).json()
        instance_id = body["instances"][0]["id"]

        response = client.delete(f"/api/appointments/{instance_id}/recurring")

        assert response.json()["deleted_count"] == 1


class TestTimerApi:

    def test_timer_flow(self, client, clock):
        appointment_id = _create(client).json()["appointment"]["id"]

        assert client.post(f"/api/appointments/{appointment_id}/timer/start").status_code == 200
        clock.advance(minutes=25)
        status = client.get(f"/api/appointments/{appointment_id}/timer/status").json()
        assert status["timer_state"] == "running"
        assert status["current_time_minutes"] == 25

        response = client.post(f"/api/appointments/{appointment_id}/timer/complete")
        assert response.json()["appointment"]["actual_time_minutes"] == 25

    def test_pause_when_stopped_returns_400(self, client):
        appointment_id = _create(client).json()["appointment"]["id"]

        response = client.post(f"/api/appointments/{appointment_id}/timer/pause")

        assert response.status_code == 400

    def test_auto_complete_pomodoros(self, client):
        _create(client, FRIDAY, "11:00", 25, is_pomodoro=True)

        response = client.post("/api/appointments/auto-complete-pomodoros")

        assert response.json()["completed_count"] == 1


class TestWorkScheduleApi:

    def test_seed_default_and_duplicate(self, client, user):
        response = client.post("/api/work-schedules/default", json={"user_id": user.id})

        assert response.status_code == 201
        assert len(response.json()["rules"]) == 22

        response = client.post("/api/work-schedules/default", json={"user_id": user.id})
        assert response.status_code == 409

    def test_resolved_default_schedule(self, client):
        response = client.get("/api/work-schedules/resolved")

        assert response.status_code == 200
        body = response.json()
        assert body["is_default"] is True
        assert [s["start_time"] for s in body["days"]["1"]] == ["08:00", "12:00", "13:00", "18:00"]

    def test_slots_for_a_date(self, client):
        response = client.get("/api/work-schedules/slots", params={"date": SATURDAY.isoformat()})

        assert response.json()["day_of_week"] == 6
        assert response.json()["slots"][0]["rule_type"] == "unavailable"

    def test_custom_schedule_and_rule(self, client, user):
        response = client.post("/api/work-schedules", json={
            "user_id": user.id,
            "name": "Short days",
            "rules": [{"day_of_week": 1, "start_time": "10:00", "end_time": "16:00", "rule_type": "work"}],
        })
        assert response.status_code == 201
        schedule_id = response.json()["id"]

        response = client.post(f"/api/work-schedules/{schedule_id}/rules", json={
            "day_of_week": 1, "start_time": "09:00", "end_time": "08:00", "rule_type": "work",
        })
        assert response.status_code == 400

        response = client.post("/api/appointments/validate", json={
            "user_id": user.id, "date": MONDAY.isoformat(), "start_time": "09:00", "duration_minutes": 30,
        })
        assert response.json()["violation"] == "outside_hours"
        assert response.json()["suggested_time"] == "10:00"


def test_users_api(client):
    response = client.post("/api/users", json={"name": "Bruno Lima", "email": "bruno@example.com"})
    assert response.status_code == 201

    response = client.post("/api/users", json={"name": "Bruno Lima", "email": "bruno@example.com"})
    assert response.status_code == 409


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["database"]["status"] == "healthy"


def test_startup_sets_scheduling_log_levels(client):
    # the client fixture has already run the application lifespan
    assert logging.getLogger("APPOINTMENT_SCHEDULER").level == logging.INFO
    assert client.get("/").status_code == 200
