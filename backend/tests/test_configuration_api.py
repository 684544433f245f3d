from test_generation_api import YEAR, create_room, create_section, create_template


def test_period_template_timings_are_validated_and_sorted(client):
    template = create_template(
        client,
        days_of_week=["Mon", "wed"],
        period_timings=[
            {"period_number": 2, "start_time": "09:30", "end_time": "10:15"},
            {"period_number": 1, "start_time": "08:45", "end_time": "09:30", "is_break": False},
        ],
    )

    assert template["days_of_week"] == ["monday", "wednesday"]
    assert [item["period_number"] for item in template["period_timings"]] == [1, 2]

    beyond_day = client.post(
        "/api/period-templates/",
        json={
            "name": "Broken",
            "academic_year": YEAR,
            "days_of_week": ["monday"],
            "periods_per_day": 2,
            "period_timings": [{"period_number": 3, "start_time": "10:00", "end_time": "10:45"}],
        },
    )
    assert beyond_day.status_code == 422


def test_period_template_update_revalidates_merged_record(client):
    template = create_template(
        client,
        period_timings=[{"period_number": 6, "start_time": "13:00", "end_time": "13:45", "is_break": True}],
    )

    shrink = client.put(f"/api/period-templates/{template['id']}", json={"periods_per_day": 4})
    assert shrink.status_code == 422

    rename = client.put(f"/api/period-templates/{template['id']}", json={"name": "Renamed"})
    assert rename.status_code == 200
    assert rename.json()["name"] == "Renamed"
    assert rename.json()["periods_per_day"] == 6


def test_activating_a_template_deactivates_the_others(client):
    first = create_template(client)
    second = create_template(client, name="Second", is_active=False)

    activated = client.post(f"/api/period-templates/{second['id']}/activate")
    assert activated.status_code == 200

    listing = {item["id"]: item["is_active"] for item in client.get("/api/period-templates/").json()}
    assert listing == {first["id"]: False, second["id"]: True}
    assert client.get("/api/period-templates/active").json()["id"] == second["id"]


def test_missing_period_template_is_404(client):
    assert client.get("/api/period-templates/nope").status_code == 404
    assert client.post("/api/period-templates/nope/activate").status_code == 404


def test_room_names_are_unique(client):
    room = create_room(client)

    duplicate = client.post("/api/rooms/", json={"name": "Room 101", "capacity": 20})
    assert duplicate.status_code == 409

    other = create_room(client, name="Lab 2", capacity=25)
    clash = client.put(f"/api/rooms/{other['id']}", json={"name": "Room 101"})
    assert clash.status_code == 409

    updated = client.put(f"/api/rooms/{room['id']}", json={"is_active": False, "facilities": [" projector ", "projector"]})
    assert updated.json()["is_active"] is False
    assert updated.json()["facilities"] == ["projector"]

    active = client.get("/api/rooms/", params={"active_only": True}).json()
    assert [item["id"] for item in active] == [other["id"]]

    assert client.delete(f"/api/rooms/{room['id']}").json() == {"success": True}
    assert client.get(f"/api/rooms/{room['id']}").status_code == 404


def test_section_codes_are_unique(client):
    section = create_section(client)

    duplicate = client.post(
        "/api/sections/",
        json={"class_name": "Another", "class_code": "CS-A", "academic_year": YEAR},
    )
    assert duplicate.status_code == 409

    updated = client.put(f"/api/sections/{section['id']}", json={"strength": 45})
    assert updated.json()["strength"] == 45


def _cell(**overrides):
    payload = {
        "constraint_type": "teacher",
        "entity_id": "t1",
        "day_of_week": "monday",
        "period_number": 1,
        "is_available": False,
        "academic_year": YEAR,
    }
    payload.update(overrides)
    return payload


def test_availability_upsert_keeps_one_row_per_cell(client):
    first = client.put("/api/availability/", json=_cell(reason="Staff meeting")).json()
    second = client.put("/api/availability/", json=_cell(day_of_week="Mon", is_available=True)).json()

    assert second["id"] == first["id"]
    assert second["is_available"] is True
    assert len(client.get("/api/availability/", params={"entity_id": "t1"}).json()) == 1


def test_availability_list_delete_and_clear(client):
    for period in (1, 2, 3):
        client.put("/api/availability/", json=_cell(period_number=period))
    room_cell = client.put("/api/availability/", json=_cell(constraint_type="room", entity_id="r1")).json()

    teacher_cells = client.get("/api/availability/", params={"constraint_type": "teacher"}).json()
    assert [item["period_number"] for item in teacher_cells] == [1, 2, 3]
    assert client.get("/api/availability/", params={"day_of_week": "funday"}).status_code == 400

    assert client.delete(f"/api/availability/{room_cell['id']}").status_code == 204
    assert client.delete(f"/api/availability/{room_cell['id']}").status_code == 404

    cleared = client.delete("/api/availability/", params={"constraint_type": "teacher", "entity_id": "t1"})
    assert cleared.json() == {"deleted": 3}
    assert client.get("/api/availability/").json() == []


def test_assignment_sequence_follows_creation_order(client):
    section = create_section(client)
    payload = {"teacher_id": "t1", "subject_id": "math", "section_ids": [section["id"]], "academic_year": YEAR}

    first = client.post("/api/assignments/", json=payload).json()
    second = client.post("/api/assignments/", json={**payload, "subject_id": "physics"}).json()

    assert second["sequence"] == first["sequence"] + 1
    listing = client.get("/api/assignments/", params={"section_id": section["id"]}).json()
    assert [item["id"] for item in listing] == [first["id"], second["id"]]


def test_assignment_rejects_inconsistent_configuration(client):
    section = create_section(client)
    base = {"teacher_id": "t1", "subject_id": "math", "section_ids": [section["id"]], "academic_year": YEAR}

    assert client.post("/api/assignments/", json={**base, "room_fixed": True}).status_code == 422
    assert client.post("/api/assignments/", json={**base, "fixed_day": "monday"}).status_code == 422
    assert client.post("/api/assignments/", json={**base, "allowed_days": ["funday"]}).status_code == 422
    assert client.post("/api/assignments/", json={**base, "section_ids": ["ghost"]}).status_code == 400
    assert client.post("/api/assignments/", json={**base, "preferred_room_ids": ["ghost"]}).status_code == 400


def test_assignment_update_revalidates_merged_record(client):
    section = create_section(client)
    room = create_room(client)
    created = client.post(
        "/api/assignments/",
        json={
            "teacher_id": "t1",
            "subject_id": "math",
            "section_ids": [section["id"]],
            "academic_year": YEAR,
            "preferred_room_ids": [room["id"]],
        },
    ).json()

    partial_pin = client.put(f"/api/assignments/{created['id']}", json={"fixed_day": "tuesday"})
    assert partial_pin.status_code == 422

    pinned = client.put(
        f"/api/assignments/{created['id']}",
        json={"fixed_day": "Tue", "fixed_period": 3, "room_fixed": True},
    )
    assert pinned.status_code == 200
    assert pinned.json()["fixed_day"] == "tuesday"
    assert pinned.json()["room_fixed"] is True

    assert client.delete(f"/api/assignments/{created['id']}").json() == {"success": True}
    assert client.get(f"/api/assignments/{created['id']}").status_code == 404
