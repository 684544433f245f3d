YEAR = "2026-2027"
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


def create_template(client, **overrides):
    payload = {
        "name": "Weekdays",
        "academic_year": YEAR,
        "days_of_week": WEEKDAYS,
        "periods_per_day": 6,
        "period_timings": [],
        "is_active": True,
    }
    payload.update(overrides)
    response = client.post("/api/period-templates/", json=payload)
    assert response.status_code == 201
    return response.json()


def create_room(client, name="Room 101", capacity=40):
    response = client.post("/api/rooms/", json={"name": name, "capacity": capacity})
    assert response.status_code == 201
    return response.json()


def create_section(client, code="CS-A", strength=30):
    response = client.post(
        "/api/sections/",
        json={"class_name": f"Class {code}", "class_code": code, "academic_year": YEAR, "strength": strength},
    )
    assert response.status_code == 201
    return response.json()


def create_assignment(client, section_ids, **overrides):
    payload = {
        "teacher_id": "t1",
        "subject_id": "math",
        "section_ids": section_ids,
        "sessions_per_week": 3,
        "session_length": 1,
        "academic_year": YEAR,
    }
    payload.update(overrides)
    response = client.post("/api/assignments/", json=payload)
    assert response.status_code == 201
    return response.json()


def generate(client, name="Draft"):
    response = client.post("/api/timetables/generate", json={"timetableName": name, "academicYear": YEAR})
    assert response.status_code == 200
    return response.json()


def seed_basic(client, **assignment_overrides):
    create_template(client)
    room = create_room(client)
    section = create_section(client)
    assignment = create_assignment(client, [section["id"]], **assignment_overrides)
    return room, section, assignment


def test_generate_places_every_session(client):
    room, section, assignment = seed_basic(client)

    body = generate(client)

    assert body["success"] is True
    assert body["totalSessions"] == 3
    assert body["assignedSessions"] == 3
    assert body["unassignedSessions"] == 0
    assert "error" not in body

    timetable = client.get(f"/api/timetables/{body['timetableId']}").json()
    assert timetable["generation_status"] == "completed"
    assert timetable["completed_at"] is not None
    assert any(line == "Placed 3 of 3 session(s); 0 unassigned" for line in timetable["generation_log"])

    slots = client.get(f"/api/timetables/{body['timetableId']}/slots").json()
    assert len(slots) == 3
    assert {slot["teaching_assignment_id"] for slot in slots} == {assignment["id"]}
    assert {slot["room_id"] for slot in slots} == {room["id"]}
    assert sorted(slot["session_index"] for slot in slots) == [0, 1, 2]


def test_slot_filters_answer_what_occupies_a_cell(client):
    _, section, _ = seed_basic(client, sessions_per_week=2, session_length=2)
    timetable_id = generate(client)["timetableId"]

    covering = client.get(
        f"/api/timetables/{timetable_id}/slots",
        params={"section_id": section["id"], "day": "Mon", "period": 2},
    ).json()
    assert [(slot["period_number"], slot["session_length"]) for slot in covering] == [(1, 2)]

    assert client.get(f"/api/timetables/{timetable_id}/slots", params={"teacher_id": "t2"}).json() == []
    assert client.get(f"/api/timetables/{timetable_id}/slots", params={"day": "friday"}).json() == []


def test_blocked_teacher_sessions_are_reported_unassigned(client):
    seed_basic(client)
    for day in WEEKDAYS:
        for period in range(1, 7):
            response = client.put(
                "/api/availability/",
                json={
                    "constraint_type": "teacher",
                    "entity_id": "t1",
                    "day_of_week": day,
                    "period_number": period,
                    "academic_year": YEAR,
                },
            )
            assert response.status_code == 200

    body = generate(client)

    assert body["success"] is True
    assert body["assignedSessions"] == 0
    assert body["unassignedSessions"] == 3
    unassigned = client.get(f"/api/timetables/{body['timetableId']}/unassigned").json()
    assert len(unassigned) == 3
    for item in unassigned:
        assert any("Teacher t1 unavailable" in reason for reason in item["conflict_reasons"])
        assert "Relax availability blackouts for the teacher" in item["suggested_fixes"]


def test_generation_without_assignments_fails_the_run(client):
    create_template(client)

    body = generate(client)

    assert body["success"] is False
    assert body["timetableId"]
    assert "No active teaching assignments" in body["error"]
    timetable = client.get(f"/api/timetables/{body['timetableId']}").json()
    assert timetable["generation_status"] == "failed"
    assert timetable["generation_log"][0].startswith("ERROR:")


def test_generation_without_active_template_fails_the_run(client):
    create_template(client, is_active=False)

    body = generate(client)

    assert body["success"] is False
    assert body["error"] == "No active period template configured"


def test_generation_with_explicit_template(client):
    create_template(client)
    other = create_template(client, name="Mornings", periods_per_day=2, is_active=False)
    section = create_section(client)
    create_room(client)
    create_assignment(client, [section["id"]], sessions_per_week=1)

    response = client.post(
        "/api/timetables/generate",
        json={"timetableName": "Mornings draft", "academicYear": YEAR, "periodTemplateId": other["id"]},
    )

    body = response.json()
    assert body["success"] is True
    assert client.get(f"/api/timetables/{body['timetableId']}").json()["period_template_id"] == other["id"]


def test_conflict_audit_of_a_generated_timetable_is_clean(client):
    seed_basic(client, sessions_per_week=5)
    timetable_id = generate(client)["timetableId"]

    report = client.get(f"/api/timetables/{timetable_id}/conflicts").json()

    assert report["timetable_id"] == timetable_id
    assert report["checked_slots"] == 5
    assert report["conflicts"] == []


def test_export_renders_section_grid_as_csv(client):
    room, section, _ = seed_basic(client, sessions_per_week=2, session_length=2)
    timetable_id = generate(client)["timetableId"]

    response = client.get(
        f"/api/timetables/{timetable_id}/export",
        params={"view": "section", "entity_id": section["id"]},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0] == "Period,Monday,Tuesday,Wednesday,Thursday,Friday"
    assert lines[1] == "P1,math - t1 (Room 101),,,,"
    assert lines[2] == "P2,↓,,,,"
    assert lines[3] == "P3,math - t1 (Room 101),,,,"
    assert len(lines) == 7

    teacher_view = client.get(
        f"/api/timetables/{timetable_id}/export",
        params={"view": "teacher", "entity_id": "t1"},
    ).text.splitlines()
    assert teacher_view[1] == "P1,math - Class CS-A (Room 101),,,,"

    room_view = client.get(
        f"/api/timetables/{timetable_id}/export",
        params={"view": "room", "entity_id": room["id"]},
    ).text.splitlines()
    assert room_view[1] == "P1,math - t1 (Class CS-A),,,,"


def test_export_rejects_unknown_view(client):
    seed_basic(client)
    timetable_id = generate(client)["timetableId"]

    response = client.get(f"/api/timetables/{timetable_id}/export", params={"view": "building", "entity_id": "x"})

    assert response.status_code == 422


def test_only_one_timetable_is_active(client):
    seed_basic(client)
    first = generate(client, "First")["timetableId"]
    second = generate(client, "Second")["timetableId"]

    assert client.post(f"/api/timetables/{first}/activate").json()["is_active"] is True
    assert client.post(f"/api/timetables/{second}/activate").json()["is_active"] is True

    listing = {item["id"]: item["is_active"] for item in client.get("/api/timetables/").json()}
    assert listing == {first: False, second: True}


def test_failed_run_cannot_be_activated(client):
    create_template(client)
    failed = generate(client)["timetableId"]

    response = client.post(f"/api/timetables/{failed}/activate")

    assert response.status_code == 409
    assert response.json()["message"] == "Only completed timetables can be activated"


def test_delete_removes_timetable_and_its_rows(client):
    seed_basic(client)
    timetable_id = generate(client)["timetableId"]

    assert client.delete(f"/api/timetables/{timetable_id}").json() == {"success": True}

    missing = client.get(f"/api/timetables/{timetable_id}")
    assert missing.status_code == 404
    assert missing.json()["details"] == {"resource_type": "GeneratedTimetable", "resource_id": timetable_id}
    assert client.get(f"/api/timetables/{timetable_id}/slots").status_code == 404


def test_generate_request_requires_name_and_year(client):
    response = client.post("/api/timetables/generate", json={"timetableName": "  ", "academicYear": YEAR})

    assert response.status_code == 422


def test_export_keeps_slots_after_the_template_shrinks(client):
    _, section, _ = seed_basic(client)
    timetable_id = generate(client)["timetableId"]
    template_id = client.get(f"/api/timetables/{timetable_id}").json()["period_template_id"]

    edited = client.put(
        f"/api/period-templates/{template_id}",
        json={"days_of_week": ["tuesday", "wednesday"], "periods_per_day": 2},
    )
    assert edited.status_code == 200

    lines = client.get(
        f"/api/timetables/{timetable_id}/export",
        params={"view": "section", "entity_id": section["id"]},
    ).text.splitlines()

    assert lines[0] == "Period,Tuesday,Wednesday,Monday"
    assert lines[1:] == [
        "P1,,,math - t1 (Room 101)",
        "P2,,,math - t1 (Room 101)",
        "P3,,,math - t1 (Room 101)",
    ]
