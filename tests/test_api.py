"""End-to-end API tests through FastAPI's TestClient."""

from datetime import date, timedelta

import pytest

from fieldroute.domain.scheduling.recurrence import local_today, weekday_of
from fieldroute.utils.geo import Coordinates


@pytest.fixture
def today():
    return local_today("America/Chicago")


@pytest.fixture
def customer(client):
    resp = client.post("/customers", json={"name": "Rivera", "lat": 30.0, "lng": -97.0})
    assert resp.status_code == 201
    return resp.json()


def rule_payload(customer_id, today, by_day=None, **overrides):
    payload = {
        "customerId": customer_id,
        "frequency": "weekly",
        "byDay": by_day if by_day is not None else [weekday_of(today)],
        "dtStart": today.isoformat(),
        "windowStart": "08:00",
        "windowEnd": "12:00",
    }
    payload.update(overrides)
    return payload


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestCustomers:
    def test_create_geocodes_address(self, client, geocoder):
        geocoder.addresses["5 Lake Dr"] = Coordinates(30.5, -97.5)
        resp = client.post("/customers", json={"name": "Lake", "address": "5 Lake Dr"})

        assert resp.status_code == 201
        assert resp.json()["lat"] == 30.5
        assert resp.json()["status"] == "active"

    def test_create_survives_geocoder_outage(self, client, geocoder):
        geocoder.unavailable = True
        resp = client.post("/customers", json={"name": "Lake", "address": "5 Lake Dr"})

        assert resp.status_code == 201
        assert resp.json()["lat"] is None

    def test_unknown_customer(self, client):
        resp = client.get("/customers/999")
        assert resp.status_code == 404
        assert resp.json()["code"] == "RESOURCE_NOT_FOUND"

    def test_archive_and_reactivate(self, client, customer, today):
        rule = client.post("/schedule-rules", json=rule_payload(customer["id"], today)).json()

        archived = client.post(f"/customers/{customer['id']}/archive").json()
        assert archived["status"] == "inactive"
        assert archived["rules"] == 1
        assert client.get(f"/schedule-rules/{rule['id']}").json()["paused"] is True
        assert client.get(f"/customers/{customer['id']}/next-visit").json()["visitDate"] is None

        reactivated = client.post(f"/customers/{customer['id']}/reactivate").json()
        assert reactivated["status"] == "active"
        assert reactivated["created"] == archived["removed"]

    def test_next_visit(self, client, customer, today):
        client.post("/schedule-rules", json=rule_payload(customer["id"], today))

        resp = client.get(f"/customers/{customer['id']}/next-visit").json()
        assert resp["visitDate"] == today.isoformat()
        assert resp["windowStart"] == "08:00"


class TestScheduleRules:
    def test_create_generates_visits(self, client, customer, today):
        resp = client.post("/schedule-rules", json=rule_payload(customer["id"], today))

        assert resp.status_code == 201
        body = resp.json()
        assert body["visitsGenerated"] >= 8
        assert body["nextVisit"] == today.isoformat()

        visits = client.get("/visits", params={"customer_id": customer["id"]}).json()
        assert len(visits) == body["visitsGenerated"]
        dates = [date.fromisoformat(v["date"]) for v in visits]
        assert all((b - a).days == 7 for a, b in zip(dates, dates[1:]))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"byDay": [7]},
            {"frequency": "monthly"},
            {"windowStart": "12:00", "windowEnd": "08:00"},
            {"windowStart": "8am"},
        ],
    )
    def test_invalid_rule_is_bad_request(self, client, customer, today, overrides):
        resp = client.post("/schedule-rules", json=rule_payload(customer["id"], today, **overrides))

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert client.get("/schedule-rules").json() == []

    def test_missing_field_is_unprocessable(self, client, customer, today):
        payload = rule_payload(customer["id"], today)
        del payload["dtStart"]
        assert client.post("/schedule-rules", json=payload).status_code == 422

    def test_unknown_customer(self, client, today):
        resp = client.post("/schedule-rules", json=rule_payload(999, today))
        assert resp.status_code == 404

    def test_patch_moves_future_visits_only(self, client, customer, today):
        rule = client.post("/schedule-rules", json=rule_payload(customer["id"], today)).json()
        new_day = (weekday_of(today) + 2) % 7

        resp = client.patch(f"/schedule-rules/{rule['id']}", json={"byDay": [new_day]})

        assert resp.status_code == 200
        assert resp.json()["removed"] == rule["visitsGenerated"] - 1
        visits = client.get("/visits", params={"customer_id": customer["id"]}).json()
        assert visits[0]["date"] == today.isoformat()
        assert all(weekday_of(date.fromisoformat(v["date"])) == new_day for v in visits[1:])

    def test_pause_resume(self, client, customer, today):
        rule = client.post("/schedule-rules", json=rule_payload(customer["id"], today)).json()

        paused = client.post(f"/schedule-rules/{rule['id']}/pause").json()
        assert paused["removed"] == rule["visitsGenerated"] - 1
        assert client.get(f"/schedule-rules/{rule['id']}/next-visit").json()["visitDate"] is None

        resumed = client.post(f"/schedule-rules/{rule['id']}/resume").json()
        assert resumed["created"] == paused["removed"]

    def test_delete_keeps_completed_visits(self, client, customer, today):
        rule = client.post("/schedule-rules", json=rule_payload(customer["id"], today)).json()
        first = client.get("/visits", params={"customer_id": customer["id"]}).json()[0]
        client.post(f"/visits/{first['id']}/start", json={"userId": "tech-1"})
        client.post(f"/visits/{first['id']}/complete", json={"userId": "tech-1"})

        resp = client.delete(f"/schedule-rules/{rule['id']}")

        assert resp.status_code == 200
        assert resp.json()["removed"] == rule["visitsGenerated"] - 1
        remaining = client.get("/visits", params={"customer_id": customer["id"]}).json()
        assert [v["status"] for v in remaining] == ["completed"]
        assert client.get(f"/schedule-rules/{rule['id']}").status_code == 404


class TestVisits:
    @pytest.fixture
    def visit(self, client, customer, today):
        client.post("/schedule-rules", json=rule_payload(customer["id"], today))
        return client.get("/visits", params={"date": today.isoformat()}).json()[0]

    def test_today(self, client, visit):
        assert [v["id"] for v in client.get("/visits/today").json()] == [visit["id"]]

    def test_skip_and_unskip(self, client, visit):
        skipped = client.post(
            f"/visits/{visit['id']}/skip", json={"reason": "Gate locked", "userId": "tech-1"}
        ).json()
        assert skipped["status"] == "skipped"
        assert skipped["billable"] is True
        assert skipped["skip_reason"] == "Gate locked"

        restored = client.post(f"/visits/{visit['id']}/unskip").json()
        assert restored["status"] == "scheduled"
        assert restored["skip_reason"] is None
        assert restored["skipped_at"] is None
        assert restored["billable"] is True

    def test_blank_skip_reason(self, client, visit):
        resp = client.post(f"/visits/{visit['id']}/skip", json={"reason": " "})
        assert resp.status_code == 400

    def test_invalid_transition_conflicts(self, client, visit):
        client.post(f"/visits/{visit['id']}/start", json={})
        client.post(f"/visits/{visit['id']}/complete", json={"completion_notes": "Done"})

        resp = client.post(f"/visits/{visit['id']}/unskip")

        assert resp.status_code == 409
        assert resp.json()["code"] == "STATE_CONFLICT"
        assert client.get(f"/visits/{visit['id']}").json()["status"] == "completed"

    def test_unknown_visit(self, client):
        assert client.post("/visits/999/start", json={}).status_code == 404

    def test_generate_for_date_is_idempotent(self, client, visit, today):
        target = today + timedelta(days=70)
        while weekday_of(target) != weekday_of(today):
            target += timedelta(days=1)

        first = client.post("/visits/generate", json={"date": target.isoformat()}).json()
        second = client.post("/visits/generate", json={"date": target.isoformat()}).json()

        assert first == {"date": target.isoformat(), "generated": 1}
        assert second["generated"] == 0


class TestGeocoding:
    def test_geocode(self, client, geocoder):
        geocoder.addresses["1 Main St"] = Coordinates(30.0, -97.0)
        assert client.post("/geocoding/geocode", json={"address": "1 Main St"}).json() == {
            "lat": 30.0,
            "lng": -97.0,
        }

    def test_geocode_unknown_address(self, client):
        resp = client.post("/geocoding/geocode", json={"address": "Nowhere"})
        assert resp.status_code == 404

    def test_geocode_outage(self, client, geocoder):
        geocoder.unavailable = True
        resp = client.post("/geocoding/geocode", json={"address": "1 Main St"})
        assert resp.status_code == 503
        assert resp.json()["code"] == "UPSTREAM_UNAVAILABLE"

    def test_best_fit(self, client, customer, geocoder, today):
        client.post("/schedule-rules", json=rule_payload(customer["id"], today, by_day=[2, 4]))
        geocoder.addresses["1 Main St"] = Coordinates(30.01, -97.0)

        body = client.post("/geocoding/best-fit", json={"address": "1 Main St"}).json()

        assert body["available"] is True
        assert body["recommendedDays"] == [2, 4]
        assert body["suggestions"][0]["dayName"] == "Tuesday"
        assert body["suggestions"][0]["nearbyCount"] == 1
        assert len(body["suggestions"]) == 7

    def test_best_fit_degrades_on_outage(self, client, customer, geocoder, today):
        client.post("/schedule-rules", json=rule_payload(customer["id"], today, by_day=[2]))
        geocoder.unavailable = True

        resp = client.post("/geocoding/best-fit", json={"address": "1 Main St"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["available"] is False
        assert body["recommendedDays"] == []
        assert body["suggestions"] == []


class TestGenerateToHorizon:
    def test_generate_up_to_horizon_end(self, client, customer, today):
        rule = client.post("/schedule-rules", json=rule_payload(customer["id"], today)).json()
        horizon = today + timedelta(days=120)

        resp = client.post("/visits/generate", json={"horizonEnd": horizon.isoformat()})

        assert resp.status_code == 200
        visits = client.get("/visits", params={"customer_id": customer["id"]}).json()
        assert resp.json()["generated"] == len(visits) - rule["visitsGenerated"]
        assert visits[-1]["date"] == (today + timedelta(days=119)).isoformat()

    def test_rule_created_with_horizon_end(self, client, customer, today):
        payload = rule_payload(
            customer["id"], today, horizonEnd=(today + timedelta(days=20)).isoformat()
        )

        resp = client.post("/schedule-rules", json=payload)

        assert resp.status_code == 201
        assert resp.json()["visitsGenerated"] == 3

    def test_date_and_horizon_end_together_is_bad_request(self, client, today):
        resp = client.post(
            "/visits/generate",
            json={"date": today.isoformat(), "horizonEnd": today.isoformat()},
        )
        assert resp.status_code == 400
        assert resp.json()["field"] == "horizonEnd"
