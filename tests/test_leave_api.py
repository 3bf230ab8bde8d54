import io
import os

from conftest import auth, make_employee
from hris_api.models.leave import LeaveRequest
from hris_api.models.notification import Notification


def _submit(client, user, start="2025-11-10", end="2025-11-12", **extra):
    return client.post(
        "/api/leave-requests",
        json={"start_date": start, "end_date": end, "reason": "Family event", **extra},
        headers=auth(user),
    )


def _review(client, user, leave_id, status="approve", **extra):
    return client.patch(
        f"/api/leave-requests/{leave_id}/review", json={"status": status, **extra}, headers=auth(user)
    )


def test_submit_forces_pending(client, org):
    r = _submit(client, org.it_emp.user, status="Approved")
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["status"] == "Pending"
    assert data["employee_id"] == org.it_emp.id
    assert data["total_days"] == 3


def test_end_before_start_is_rejected(client, org):
    r = _submit(client, org.it_emp.user, start="2025-11-12", end="2025-11-10")
    assert r.status_code == 422
    assert "end_date" in r.get_json()["error"]["errors"]


def test_employee_without_profile_gets_precondition_failure(client, org):
    r = _submit(client, org.loose)
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "PROFILE_UNAVAILABLE"


def test_admin_without_profile_submits_under_principal_id(client, org):
    r = _submit(client, org.admin)
    assert r.status_code == 201
    assert r.get_json()["data"]["employee_id"] == org.admin.id


def test_admin_cannot_review_own_leave(client, org):
    leave_id = _submit(client, org.admin).get_json()["data"]["id"]
    r = _review(client, org.admin, leave_id)
    assert r.status_code == 403
    assert r.get_json()["error"]["detail"]["reason"] == "self_review"


def test_admin_leave_goes_to_a_manager(client, org):
    leave_id = _submit(client, org.admin2).get_json()["data"]["id"]
    r = _review(client, org.admin, leave_id)
    assert r.status_code == 403
    assert r.get_json()["error"]["detail"]["reason"] == "admin_target_requires_manager"

    # a manager of an unrelated department may review an Admin HR
    r = _review(client, org.mkt_mgr, leave_id, status="reject")
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "Rejected"


def test_manager_outside_department_is_forbidden(client, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    r = _review(client, org.mkt_mgr, leave_id)
    assert r.status_code == 403
    assert r.get_json()["error"]["detail"]["reason"] == "outside_managed_department"


def test_manager_approves_in_department(client, session, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    r = _review(client, org.it_mgr, leave_id)
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "Approved"
    assert data["reviewed_by"] == org.it_mgr.id
    assert data["reviewed_at"] is not None
    assert data["reviewer_note"] == "Leave request has been approved."

    n = Notification.query.filter_by(user_id=org.it_emp.user_id).one()
    assert n.type == "leave_approved"


def test_review_is_terminal(client, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    assert _review(client, org.admin, leave_id, reviewer_note="ok").status_code == 200
    assert _review(client, org.admin, leave_id, status="reject").status_code == 409

    user = org.it_emp.user
    r = client.put(f"/api/leave-requests/{leave_id}", json={"reason": "changed"}, headers=auth(user))
    assert r.status_code == 409
    r = client.delete(f"/api/leave-requests/{leave_id}", headers=auth(user))
    assert r.status_code == 409


def test_review_outcome_is_validated(client, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    assert _review(client, org.admin, leave_id, status="maybe").status_code == 422


def test_only_owner_modifies_pending_leave(client, session, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    other = make_employee(org.it)
    r = client.put(f"/api/leave-requests/{leave_id}", json={"reason": "mine now"}, headers=auth(other.user))
    assert r.status_code == 403

    r = client.put(
        f"/api/leave-requests/{leave_id}", json={"end_date": "2025-11-14"}, headers=auth(org.it_emp.user)
    )
    assert r.status_code == 200
    assert r.get_json()["data"]["total_days"] == 5

    r = client.delete(f"/api/leave-requests/{leave_id}", headers=auth(org.it_emp.user))
    assert r.status_code == 200
    assert session.get(LeaveRequest, leave_id) is None


def test_period_filter_matches_overlapping_months(client, org):
    user = org.it_emp.user
    _submit(client, user, start="2025-12-28", end="2026-01-05")
    _submit(client, user, start="2026-03-02", end="2026-03-03")

    def ids(period):
        r = client.get(f"/api/leave-requests/me?period={period}", headers=auth(user))
        assert r.status_code == 200
        return [x["start_date"] for x in r.get_json()["data"]]

    assert ids("2025-12") == ["2025-12-28"]
    assert ids("2026-01") == ["2025-12-28"]
    assert ids("2026-02") == []


def test_privileged_list_is_scoped_for_managers(client, org):
    _submit(client, org.it_emp.user)
    _submit(client, org.mkt_emp.user)

    r = client.get("/api/leave-requests", headers=auth(org.it_mgr))
    rows = r.get_json()["data"]
    assert [x["employee_name"] for x in rows] == ["Budi Santoso"]
    # internal keys stay out of the list shape
    assert "employee_id" not in rows[0]

    r = client.get("/api/leave-requests?sort_by=employee_name&sort_order=asc", headers=auth(org.admin))
    assert [x["employee_name"] for x in r.get_json()["data"]] == ["Budi Santoso", "Maya Putri"]
    assert r.get_json()["meta"]["total"] == 2


def test_privileged_list_filters(client, org):
    _submit(client, org.it_emp.user, start="2025-11-10", end="2025-11-10")
    _submit(client, org.mkt_emp.user, start="2025-11-03", end="2025-11-07")

    def names(query):
        r = client.get(f"/api/leave-requests?{query}", headers=auth(org.admin))
        return sorted(x["employee_name"] for x in r.get_json()["data"])

    assert names("search=content") == ["Maya Putri"]
    assert names("department=IT") == ["Budi Santoso"]
    assert names("min_days=2") == ["Maya Putri"]
    assert names("date_from=2025-11-08&date_to=2025-11-30") == ["Budi Santoso"]
    assert names("status=pending") == ["Budi Santoso", "Maya Putri"]
    assert names("status=approved") == []


def test_show_visibility(client, session, org):
    leave_id = _submit(client, org.it_emp.user).get_json()["data"]["id"]
    assert client.get(f"/api/leave-requests/{leave_id}", headers=auth(org.it_emp.user)).status_code == 200
    assert client.get(f"/api/leave-requests/{leave_id}", headers=auth(org.it_mgr)).status_code == 200
    assert client.get(f"/api/leave-requests/{leave_id}", headers=auth(org.mkt_mgr)).status_code == 403
    assert client.get(f"/api/leave-requests/{leave_id}", headers=auth(org.mkt_emp.user)).status_code == 403
    assert client.get("/api/leave-requests/999", headers=auth(org.admin)).status_code == 404


def test_photo_replacement_deletes_previous_file(client, app, session, org):
    user = org.it_emp.user
    r = client.post(
        "/api/leave-requests",
        data={"start_date": "2025-11-10", "end_date": "2025-11-11",
              "photo": (io.BytesIO(b"first"), "note.png")},
        headers=auth(user),
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    data = r.get_json()["data"]
    root = app.config["LEAVE_PHOTO_ROOT"]
    first = os.path.join(root, data["photo"])
    assert os.path.exists(first)

    r = client.put(
        f"/api/leave-requests/{data['id']}",
        data={"photo": (io.BytesIO(b"second"), "note2.jpg")},
        headers=auth(user),
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    second = os.path.join(root, r.get_json()["data"]["photo"])
    assert not os.path.exists(first)
    assert os.path.exists(second)

    client.delete(f"/api/leave-requests/{data['id']}", headers=auth(user))
    assert not os.path.exists(second)


def test_photo_type_is_validated(client, org):
    r = client.post(
        "/api/leave-requests",
        data={"start_date": "2025-11-10", "end_date": "2025-11-11",
              "photo": (io.BytesIO(b"x"), "note.exe")},
        headers=auth(org.it_emp.user),
        content_type="multipart/form-data",
    )
    assert r.status_code == 422
    assert LeaveRequest.query.count() == 0
    assert r.get_json()["error"]["errors"]["photo"]



def test_rejected_replacement_keeps_previous_photo(client, app, session, org):
    user = org.it_emp.user
    r = client.post(
        "/api/leave-requests",
        data={"start_date": "2025-11-10", "end_date": "2025-11-11",
              "photo": (io.BytesIO(b"first"), "note.png")},
        headers=auth(user),
        content_type="multipart/form-data",
    )
    data = r.get_json()["data"]
    first = os.path.join(app.config["LEAVE_PHOTO_ROOT"], data["photo"])

    r = client.put(
        f"/api/leave-requests/{data['id']}",
        data={"reason": "updated", "photo": (io.BytesIO(b"x"), "evil.exe")},
        headers=auth(user),
        content_type="multipart/form-data",
    )
    assert r.status_code == 422
    assert os.path.exists(first)
    leave = session.get(LeaveRequest, data["id"])
    assert leave.photo == data["photo"]
    assert leave.reason is None


def test_any_manager_sees_admin_hr_leave(client, org):
    aliased_id = _submit(client, org.admin).get_json()["data"]["id"]
    profiled_id = _submit(client, org.admin2).get_json()["data"]["id"]
    _submit(client, org.mkt_emp.user)

    r = client.get("/api/leave-requests", headers=auth(org.it_mgr))
    assert sorted(x["id"] for x in r.get_json()["data"]) == sorted([aliased_id, profiled_id])

    assert client.get(f"/api/leave-requests/{aliased_id}", headers=auth(org.mkt_mgr)).status_code == 200
    assert client.get(f"/api/leave-requests/{profiled_id}", headers=auth(org.it_mgr)).status_code == 200
