import io

from sqlalchemy.exc import OperationalError

from schooldesk.extensions import db


def _payload(school_data, status="present", day="2024-05-01"):
    return {
        "class_id": school_data.class_id,
        "attendance": [
            {"student_id": school_data.student_ids[0], "date": day, "status": status},
        ],
    }


def test_saved_attendance_is_returned_for_the_day(client, school_data, admin_headers):
    response = client.post("/attendance/students", json=_payload(school_data), headers=admin_headers)
    assert response.status_code == 200
    saved = response.get_json()["data"]
    assert [(m["student_id"], m["status"]) for m in saved] == [(school_data.student_ids[0], "present")]
    assert saved[0]["marked_by_name"] == "Springfield Admin"

    response = client.get(
        f"/attendance/students?class_id={school_data.class_id}&date=2024-05-01",
        headers=admin_headers,
    )
    assert response.status_code == 200
    marks = response.get_json()
    assert len(marks) == 1
    assert marks[0]["status"] == "present"
    assert marks[0]["date"] == "2024-05-01"
    assert marks[0]["student"]["full_name"] == "Bart Simpson"


def test_resubmitting_a_day_does_not_duplicate(client, school_data, admin_headers):
    client.post("/attendance/students", json=_payload(school_data), headers=admin_headers)
    client.post("/attendance/students", json=_payload(school_data, status="late"), headers=admin_headers)

    marks = client.get("/attendance/students?date=2024-05-01", headers=admin_headers).get_json()
    assert [m["status"] for m in marks] == ["late"]


def test_range_query_returns_ascending_dates(client, school_data, admin_headers):
    for day in ("2024-05-02", "2024-05-01"):
        client.post("/attendance/students", json=_payload(school_data, day=day), headers=admin_headers)

    marks = client.get(
        "/attendance/students?start_date=2024-05-01&end_date=2024-05-31",
        headers=admin_headers,
    ).get_json()
    assert [m["date"] for m in marks] == ["2024-05-01", "2024-05-02"]


def test_missing_token_is_unauthorized(client, school_data):
    response = client.post("/attendance/students", json=_payload(school_data))
    assert response.status_code == 401
    assert response.get_json()["error"] == "Unauthorized"


def test_body_without_attendance_list_is_rejected(client, school_data, admin_headers):
    response = client.post(
        "/attendance/students",
        json={"class_id": school_data.class_id, "attendance": "none"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid request data"


def test_invalid_status_is_a_validation_error(client, school_data, admin_headers):
    response = client.post(
        "/attendance/students",
        json=_payload(school_data, status="asleep"),
        headers=admin_headers,
    )
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "Invalid request data"
    assert "asleep" in body["message"]


def test_class_of_another_school_is_not_found(client, school_data, admin_headers):
    payload = _payload(school_data)
    payload["class_id"] = school_data.other_class_id

    response = client.post("/attendance/students", json=payload, headers=admin_headers)
    assert response.status_code == 404


def test_teachers_cannot_mark_attendance(client, school_data, auth_headers):
    response = client.post(
        "/attendance/students",
        json=_payload(school_data),
        headers=auth_headers(school_data.teacher_user_id),
    )
    assert response.status_code == 403


def test_teachers_can_read_attendance(client, school_data, admin_headers, auth_headers):
    client.post("/attendance/students", json=_payload(school_data), headers=admin_headers)

    response = client.get("/attendance/students?date=2024-05-01",
                          headers=auth_headers(school_data.teacher_user_id))
    assert response.status_code == 200
    assert len(response.get_json()) == 1


def test_other_school_admin_sees_nothing(client, school_data, admin_headers, auth_headers):
    client.post("/attendance/students", json=_payload(school_data), headers=admin_headers)

    response = client.get("/attendance/students?date=2024-05-01",
                          headers=auth_headers(school_data.other_admin_id))
    assert response.status_code == 200
    assert response.get_json() == []


def test_admin_cannot_reach_another_school(client, school_data, admin_headers):
    response = client.get(
        f"/attendance/students?school_id={school_data.other_school_id}",
        headers=admin_headers,
    )
    assert response.status_code == 403


def test_superuser_marks_for_a_named_school(client, school_data, auth_headers):
    payload = _payload(school_data)
    payload["school_id"] = school_data.school_id

    response = client.post("/attendance/students", json=payload,
                           headers=auth_headers(school_data.superuser_id))
    assert response.status_code == 200
    assert response.get_json()["data"][0]["school_id"] == school_data.school_id


def test_delete_single_mark(client, school_data, admin_headers):
    client.post("/attendance/students", json=_payload(school_data), headers=admin_headers)
    student_id = school_data.student_ids[0]

    response = client.delete(f"/attendance/students?student_id={student_id}&date=2024-05-01",
                             headers=admin_headers)
    assert response.status_code == 200

    response = client.delete(f"/attendance/students?student_id={student_id}&date=2024-05-01",
                             headers=admin_headers)
    assert response.status_code == 404


def test_csv_upload_saves_marks(client, school_data, admin_headers):
    first, second = school_data.student_ids[:2]
    csv = (
        "student_id,date,status,remarks\n"
        f"{first},2024-05-01,present,\n"
        f"{second},2024-05-01,absent,flu\n"
    )

    response = client.post(
        "/attendance/students/bulkupload",
        data={"class_id": str(school_data.class_id), "file": (io.BytesIO(csv.encode()), "may.csv")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    saved = {m["student_id"]: (m["status"], m["remarks"]) for m in response.get_json()["data"]}
    assert saved == {first: ("present", None), second: ("absent", "flu")}


def test_upload_with_missing_columns_is_rejected(client, school_data, admin_headers):
    csv = "student_id,status\n1,present\n"
    response = client.post(
        "/attendance/students/bulkupload",
        data={"file": (io.BytesIO(csv.encode()), "may.csv")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert "date" in response.get_json()["message"]


def test_upload_needs_a_file(client, school_data, admin_headers):
    response = client.post(
        "/attendance/students/bulkupload",
        data={},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


def test_teacher_attendance_replaces_the_day(client, school_data, admin_headers):
    first, second = school_data.teacher_ids
    body = {
        "date": "2024-05-01",
        "marked_by_admin_id": school_data.admin_id,
        "attendanceData": [
            {"teacherId": first, "status": "present"},
            {"teacherId": second, "status": "sick", "notes": "flu"},
        ],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["data"] == {"date": "2024-05-01", "count": 2}

    body["attendanceData"] = [{"teacherId": first, "status": "personal"}]
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.get_json()["data"] == {"date": "2024-05-01", "count": 1}

    response = client.get("/attendance/teachers?date=2024-05-01", headers=admin_headers)
    marks = response.get_json()["data"]
    assert [(m["teacher_id"], m["status"]) for m in marks] == [(first, "leave")]
    assert marks[0]["teacher"]["full_name"] == "Edna Krabappel"


def test_teacher_attendance_requires_marker(client, school_data, admin_headers):
    body = {
        "date": "2024-05-01",
        "attendanceData": [{"teacherId": school_data.teacher_ids[0], "status": "present"}],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Missing required fields"


def test_teacher_of_another_school_is_rejected(client, school_data, admin_headers):
    body = {
        "date": "2024-05-01",
        "marked_by_admin_id": school_data.admin_id,
        "attendanceData": [{"teacherId": school_data.other_teacher_id, "status": "present"}],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.status_code == 400


def test_teacher_attendance_query_needs_a_date(client, school_data, admin_headers):
    response = client.get("/attendance/teachers", headers=admin_headers)
    assert response.status_code == 400


def test_teacher_attendance_rejects_unknown_marker(client, school_data, admin_headers):
    body = {
        "date": "2024-05-01",
        "marked_by_admin_id": 99999,
        "attendanceData": [{"teacherId": school_data.teacher_ids[0], "status": "present"}],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid request data"


def test_teacher_attendance_rejects_marker_from_another_school(client, school_data, admin_headers):
    body = {
        "date": "2024-05-01",
        "marked_by_admin_id": school_data.other_admin_id,
        "attendanceData": [{"teacherId": school_data.teacher_ids[0], "status": "present"}],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)
    assert response.status_code == 400

    response = client.get("/attendance/teachers?date=2024-05-01", headers=admin_headers)
    assert response.get_json()["data"] == []


def test_persistence_failure_names_the_step(client, school_data, admin_headers, monkeypatch):
    def execute(*args, **kwargs):
        raise OperationalError("INSERT INTO teacher_attendance", {}, Exception("disk I/O error"))
    monkeypatch.setattr(db.session, "execute", execute)

    body = {
        "date": "2024-05-01",
        "marked_by_admin_id": school_data.admin_id,
        "attendanceData": [{"teacherId": school_data.teacher_ids[0], "status": "present"}],
    }
    response = client.post("/attendance/teachers", json=body, headers=admin_headers)

    assert response.status_code == 500
    assert response.get_json() == {
        "error": "Persistence failure",
        "message": "Failed to save attendance records",
        "step": "insert",
    }


def test_upload_rejects_non_iso_dates(client, school_data, admin_headers):
    csv = f"student_id,date,status\n{school_data.student_ids[0]},05/01/2024,present\n"
    response = client.post(
        "/attendance/students/bulkupload",
        data={"file": (io.BytesIO(csv.encode()), "may.csv")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert "05/01/2024" in response.get_json()["message"]

    marks = client.get("/attendance/students", headers=admin_headers).get_json()
    assert marks == []
