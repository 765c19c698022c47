from salon.models.tables import Appointments


def _booking(seed, time="09:00", service="haircut", worker="anna"):
    return {
        "location_id": seed["location_id"],
        "worker_id": seed[worker],
        "service_id": seed[service],
        "date": seed["date"],
        "start_time": time,
    }


def _headers(seed):
    return {"X-Client-Id": str(seed["client_id"])}


# ── Availability ─────────────────────────────────────────────────────────


def test_get_availability(client, seed):
    r = client.get("/availability", params={
        "location_id": seed["location_id"],
        "worker_id": seed["anna"],
        "service_id": seed["haircut"],
        "date": seed["date"],
    })
    assert r.status_code == 200
    body = r.json()
    assert body["shift_type"] == "morning"
    assert body["duration_min"] == 40
    assert body["slots"][:3] == ["08:00", "08:20", "08:40"]


def test_availability_error_mapping(client, seed):
    r = client.get("/availability", params={
        "location_id": seed["location_id"],
        "worker_id": seed["ben"],
        "service_id": seed["trim"],
        "date": seed["date"],
    })
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"

    r = client.get("/availability", params={
        "location_id": seed["location_id"],
        "worker_id": seed["anna"],
        "service_id": seed["haircut"],
        "date": "2025/03/14",
    })
    assert r.status_code == 422
    assert r.json() == {
        "detail": "date must be in YYYY-MM-DD format.",
        "code": "validation_error",
        "retryable": False,
        "field": "date",
    }


def test_availability_summary(client, seed):
    r = client.get("/availability/summary", params={
        "location_id": seed["location_id"],
        "worker_id": seed["anna"],
        "service_id": seed["haircut"],
        "from": "2025-03-14",
        "to": "2025-03-15",
    })
    assert r.status_code == 200
    assert [d["availability"] for d in r.json()] == ["free", "off"]


def test_worker_shifts(client, seed):
    r = client.get("/worker-shifts", params={
        "location_id": seed["location_id"],
        "worker_id": seed["ben"],
        "from": "2025-03-10",
        "to": "2025-03-16",
    })
    assert r.status_code == 200
    assert r.json() == [{"worker_id": seed["ben"], "date": seed["date"], "shift_type": "afternoon"}]


# ── Public booking ───────────────────────────────────────────────────────


def test_book_and_list_my_appointments(client, seed, redis_events):
    r = client.post("/appointments", json=_booking(seed), headers=_headers(seed))
    assert r.status_code == 201
    created = r.json()
    assert created["status"] == "pending"
    assert created["end_time"] == "09:40"
    assert redis_events.types() == ["appointment_created"]

    r = client.get("/my-appointments", headers=_headers(seed))
    assert r.status_code == 200
    assert [a["id"] for a in r.json()] == [created["id"]]


def test_double_booking_is_conflict(client, seed):
    assert client.post("/appointments", json=_booking(seed), headers=_headers(seed)).status_code == 201

    r = client.post("/appointments", json=_booking(seed, "09:20", "trim"), headers=_headers(seed))
    assert r.status_code == 409
    assert r.json()["code"] == "slot_unavailable"
    assert r.json()["retryable"] is False


def test_booking_outside_shift(client, seed):
    r = client.post("/appointments", json=_booking(seed, "16:00"), headers=_headers(seed))
    assert r.status_code == 422
    assert r.json()["code"] == "outside_shift"


def test_booking_requires_client_header(client, seed):
    assert client.post("/appointments", json=_booking(seed)).status_code == 401
    assert client.post(
        "/appointments", json=_booking(seed), headers={"X-Client-Id": "999"}
    ).status_code == 401


def test_booking_time_shape_is_checked_at_boundary(client, seed):
    r = client.post("/appointments", json=_booking(seed, "9:00"), headers=_headers(seed))
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["retryable"] is False
    assert body["field"] == "start_time"
    assert isinstance(body["detail"], str)


def test_missing_body_field_uses_error_shape(client, seed):
    payload = _booking(seed)
    del payload["worker_id"]
    r = client.post("/appointments", json=payload, headers=_headers(seed))
    assert r.status_code == 422
    assert r.json()["field"] == "worker_id"
    assert set(r.json()) == {"detail", "code", "retryable", "field"}


# ── Admin ────────────────────────────────────────────────────────────────


def test_admin_appointment_lifecycle(client, seed, redis_events):
    payload = {
        **_booking(seed, "18:00"),
        "client_name": "Jovan Ilic",
        "client_phone": "064 555 0101",
    }
    r = client.post("/admin/appointments/", json=payload)
    assert r.status_code == 201
    appointment = r.json()
    assert appointment["status"] == "confirmed"
    assert appointment["source"] == "admin"

    r = client.put(f"/admin/appointments/{appointment['id']}", json={**payload, "start_time": "18:20"})
    assert r.status_code == 200
    assert r.json()["end_time"] == "19:00"

    r = client.patch(
        f"/admin/appointments/{appointment['id']}/status",
        json={"status": "cancelled", "reason": "client called"},
    )
    assert r.status_code == 200
    assert r.json()["cancelled_by"] == "admin"

    r = client.get("/admin/appointments/", params={"worker_id": seed["anna"], "status": "cancelled"})
    assert [a["id"] for a in r.json()] == [appointment["id"]]

    assert client.delete(f"/admin/appointments/{appointment['id']}").status_code == 204
    assert client.delete(f"/admin/appointments/{appointment['id']}").status_code == 404
    assert redis_events.pushed == []


def test_cancel_worker_day_endpoint(client, seed, redis_events):
    client.post("/appointments", json=_booking(seed, "09:00"), headers=_headers(seed))
    client.post("/appointments", json=_booking(seed, "10:00"), headers=_headers(seed))

    r = client.post("/admin/appointments/cancel-worker-day", json={
        "location_id": seed["location_id"],
        "worker_id": seed["anna"],
        "date": seed["date"],
        "reason": "Sick leave",
    })
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "cancelled": 2}
    assert redis_events.types().count("appointment_cancelled") == 2


def test_blocks_endpoints(client, seed):
    body = {
        "location_id": seed["location_id"],
        "worker_id": seed["anna"],
        "date": seed["date"],
        "start_time": "12:00",
        "duration_min": 30,
        "note": "Lunch",
    }
    r = client.post("/blocks/", json=body)
    assert r.status_code == 201
    blk = r.json()
    assert blk["end_time"] == "12:40"

    r = client.post("/blocks/", json={**body, "start_time": "12:20"})
    assert r.status_code == 409

    r = client.put(f"/blocks/{blk['id']}", json={**body, "start_time": "12:20"})
    assert r.status_code == 200

    r = client.get("/blocks/", params={"worker_id": seed["anna"], "date": seed["date"]})
    assert [b["start_time"] for b in r.json()] == ["12:20"]

    assert client.delete(f"/blocks/{blk['id']}").status_code == 204


def test_shift_swap_and_week_endpoints(client, seed, redis_events):
    r = client.post("/shifts/swap", json={
        "location_id": seed["location_id"],
        "date": seed["date"],
        "worker_a_id": seed["anna"],
        "worker_b_id": seed["ben"],
    })
    assert r.status_code == 200
    assert {s["worker_id"]: s["shift_type"] for s in r.json()["shifts"]} == {
        seed["anna"]: "afternoon",
        seed["ben"]: "morning",
    }

    client.post("/appointments", json=_booking(seed, "15:00"), headers=_headers(seed))
    r = client.post("/shifts/swap", json={
        "location_id": seed["location_id"],
        "date": seed["date"],
        "worker_a_id": seed["anna"],
        "worker_b_id": seed["ben"],
    })
    assert r.status_code == 409
    assert r.json()["code"] == "swap_blocked"

    r = client.post("/shifts/week", json={
        "location_id": seed["location_id"],
        "shifts": [{"worker_id": seed["ben"], "date": "2025-03-17", "shift_type": "morning"}],
    })
    assert r.json() == {"status": "ok", "count": 1}


def test_shift_settings_endpoints(client, seed):
    r = client.get(f"/shift-settings/{seed['location_id']}")
    assert r.status_code == 200
    assert r.json()["morning_end"] == "14:00"

    body = {
        "work_start": "09:00", "work_end": "21:00",
        "morning_start": "09:00", "morning_end": "15:00",
        "afternoon_start": "15:00", "afternoon_end": "21:00",
    }
    r = client.put(f"/shift-settings/{seed['location_id']}", json=body)
    assert r.status_code == 200
    assert r.json()["afternoon_end"] == "21:00"

    r = client.put(f"/shift-settings/{seed['location_id']}", json={**body, "morning_end": "16:00"})
    assert r.status_code == 422


def test_worker_cap_is_enforced(client, seed):
    r = client.post("/workers/", json={"location_id": seed["location_id"], "name": "Cara"})
    assert r.status_code == 201

    r = client.post("/workers/", json={"location_id": seed["location_id"], "name": "Dora"})
    assert r.status_code == 409
    assert r.json()["code"] == "capacity_exceeded"

    r = client.post(
        "/workers/", json={"location_id": seed["location_id"], "name": "Dora", "is_active": False}
    )
    assert r.status_code == 201
    dora = r.json()["id"]

    assert client.patch(f"/workers/{dora}", json={"is_active": True}).status_code == 409
    assert client.patch(f"/workers/{seed['ben']}", json={"is_active": False}).status_code == 200
    assert client.patch(f"/workers/{dora}", json={"is_active": True}).status_code == 200


def test_worker_services_create_catalog_entry(client, seed):
    r = client.post("/worker-services/", json={
        "worker_id": seed["ben"], "service_name": "Beard", "duration_min": 25, "price": 12,
    })
    assert r.status_code == 201
    assert r.json()["service_name"] == "Beard"

    r = client.post("/worker-services/", json={
        "worker_id": seed["ben"], "service_name": "haircut", "duration_min": 25,
    })
    assert r.status_code == 409

    r = client.post("/worker-services/", json={
        "worker_id": seed["ben"], "service_name": "Perm", "duration_min": 300,
    })
    assert r.status_code == 422
    assert r.json()["field"] == "duration_min"


def test_worker_calendar(client, seed):
    client.post("/appointments", json=_booking(seed, "09:00"), headers=_headers(seed))
    client.post("/blocks/", json={
        "location_id": seed["location_id"], "worker_id": seed["anna"], "date": seed["date"],
        "start_time": "12:00", "duration_min": 20,
    })

    r = client.get(f"/admin/workers/{seed['anna']}/calendar", params={"from": "2025-03-14", "to": "2025-03-14"})
    assert r.status_code == 200
    body = r.json()
    assert [a["start_time"] for a in body["appointments"]] == ["09:00"]
    assert [b["start_time"] for b in body["blocks"]] == ["12:00"]


def test_locations_and_health(client, seed):
    r = client.post("/locations/", json={"name": "Novi Beograd", "max_active_workers": 2})
    assert r.status_code == 201
    assert r.json()["is_active"] is True

    r = client.patch(f"/locations/{r.json()['id']}", json={"is_active": False})
    assert r.json()["is_active"] is False
    assert [loc["name"] for loc in client.get("/locations/").json()] == ["Centar"]

    assert client.get("/health").json() == {"status": "ok", "redis": True}


def test_location_cap_cannot_drop_below_active_workers(client, seed):
    url = f"/locations/{seed['location_id']}"

    r = client.patch(url, json={"max_active_workers": 1})
    assert r.status_code == 409
    assert r.json()["code"] == "capacity_exceeded"

    r = client.patch(url, json={"max_active_workers": 2})
    assert r.status_code == 200
    assert r.json()["max_active_workers"] == 2


def test_unknown_appointment_status_update(client, seed, db):
    r = client.patch("/admin/appointments/999/status", json={"status": "confirmed"})
    assert r.status_code == 404
    assert db.query(Appointments).count() == 0
