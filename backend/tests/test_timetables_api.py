def _snapshot(**overrides):
    payload = {
        "academicYear": "2026-2027",
        "semester": 3,
        "department": "CSE",
        "subjects": [
            {
                "id": "dsa",
                "code": "cs201",
                "name": "Data Structures",
                "department": "CSE",
                "type": "theory",
                "sessionsPerWeek": 2,
                "sessionDuration": 60,
            }
        ],
        "faculty": [
            {"id": "f1", "name": "Prof A", "departments": ["CSE"], "weeklyLoadLimit": 12},
        ],
        "rooms": [
            {"id": "r1", "building": "Main", "roomNumber": "101", "capacity": 60, "type": "lecture_hall"},
        ],
        "batches": [
            {
                "id": "cse-3a",
                "name": "CSE 3A",
                "department": "CSE",
                "enrolledStudents": 45,
                "subjects": [{"subject": "dsa"}],
            }
        ],
        "constraints": {
            "workingDays": ["Mon", "Tue"],
            "workingHours": {"startTime": "09:00", "endTime": "15:00"},
            "lunchBreak": {"startTime": "12:00", "endTime": "13:00"},
        },
    }
    payload.update(overrides)
    return payload


def test_generate_persists_and_reads_back(client):
    response = client.post("/api/timetables/generate", json=_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert body["timetable_id"]
    result = body["result"]
    assert result["success"] is True
    assert len(result["schedule"]) == 2
    assert {item["subject_code"] for item in result["schedule"]} == {"CS201"}
    assert "X-Process-Time-Ms" in response.headers

    stored = client.get(f"/api/timetables/{body['timetable_id']}")
    assert stored.status_code == 200
    stored_body = stored.json()
    assert stored_body["department"] == "CSE"
    assert stored_body["academic_year"] == "2026-2027"
    assert stored_body["result"]["schedule"] == result["schedule"]


def test_generate_without_persist_returns_no_id(client):
    response = client.post("/api/timetables/generate", json=_snapshot(persist=False))

    assert response.status_code == 200
    assert response.json()["timetable_id"] is None
    assert client.get("/api/timetables").json() == []


def test_list_filters_by_scope(client):
    client.post("/api/timetables/generate", json=_snapshot())
    client.post("/api/timetables/generate", json=_snapshot(semester=5))

    all_items = client.get("/api/timetables").json()
    assert len(all_items) == 2

    filtered = client.get("/api/timetables", params={"semester": 5}).json()
    assert [item["semester"] for item in filtered] == [5]
    assert client.get("/api/timetables", params={"department": "ECE"}).json() == []


def test_unknown_timetable_is_404(client):
    response = client.get("/api/timetables/does-not-exist")

    assert response.status_code == 404
    assert response.json()["message"] == "Timetable with id does-not-exist not found"


def test_infeasible_input_still_returns_a_result(client):
    payload = _snapshot(
        reservations=[
            {"day": "Monday", "startTime": "09:00", "endTime": "15:00", "roomId": "r1"},
            {"day": "Tuesday", "startTime": "09:00", "endTime": "15:00", "roomId": "r1"},
        ]
    )

    response = client.post("/api/timetables/generate", json=payload)

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["success"] is False
    assert result["statistics"]["unplaceable_sessions"] == 2


def test_missing_rooms_is_a_bad_request(client):
    response = client.post("/api/timetables/generate", json=_snapshot(rooms=[]))

    assert response.status_code == 400
    assert response.json()["message"] == "No rooms available for generation"


def test_invalid_snapshot_is_rejected(client):
    response = client.post(
        "/api/timetables/generate",
        json=_snapshot(constraints={"workingHours": {"startTime": "18:00", "endTime": "09:00"}}),
    )

    assert response.status_code == 422


def test_invalid_academic_year_is_rejected(client):
    response = client.post("/api/timetables/generate", json=_snapshot(academicYear="next year"))

    assert response.status_code == 422


def test_name_and_constraints_are_stored(client):
    body = client.post("/api/timetables/generate", json=_snapshot(name="CSE odd semester draft")).json()

    stored = client.get(f"/api/timetables/{body['timetable_id']}").json()

    assert stored["name"] == "CSE odd semester draft"
    assert stored["is_active"] is True
    assert stored["constraints"]["workingDays"] == ["Monday", "Tuesday"]
    assert stored["constraints"]["lunchBreak"] == {"startTime": "12:00", "endTime": "13:00"}


def test_unnamed_timetable_gets_a_scope_label(client):
    body = client.post("/api/timetables/generate", json=_snapshot()).json()

    stored = client.get(f"/api/timetables/{body['timetable_id']}").json()

    assert stored["name"] == "CSE 2026-2027 Semester 3 timetable"


def test_conflict_check_on_stored_timetable(client):
    timetable_id = client.post("/api/timetables/generate", json=_snapshot()).json()["timetable_id"]

    response = client.get(f"/api/timetables/{timetable_id}/conflicts")

    assert response.status_code == 200
    body = response.json()
    assert body["timetable_id"] == timetable_id
    assert body["conflicts"] == []
    assert body["summary"] == {"total": 0, "critical": 0, "high": 0, "medium": 0, "low": 0}


def test_delete_is_a_soft_delete(client):
    timetable_id = client.post("/api/timetables/generate", json=_snapshot()).json()["timetable_id"]

    response = client.delete(f"/api/timetables/{timetable_id}")

    assert response.status_code == 204
    assert client.get(f"/api/timetables/{timetable_id}").status_code == 404
    assert client.get(f"/api/timetables/{timetable_id}/conflicts").status_code == 404
    assert client.get("/api/timetables").json() == []
    assert client.delete(f"/api/timetables/{timetable_id}").status_code == 404
