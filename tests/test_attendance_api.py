from datetime import date, datetime, time

import pytest

from conftest import auth
from hris_api.common.errors import Conflict, PreconditionFailed, ProfileUnavailable
from hris_api.models.attendance import Attendance
from hris_api.services import attendance_service
from hris_api.services.attendance_service import check_in, check_out
from hris_api.services.identity import resolve_actor


def test_check_in_and_out_compute_work_hour(session, org):
    actor = resolve_actor(org.it_emp.user)
    check_in(actor, now=datetime(2025, 3, 3, 9, 0, 12))
    row = check_out(actor, now=datetime(2025, 3, 3, 17, 30, 40))
    assert row.check_in_time == time(9, 0, 12)
    assert float(row.work_hour) == 8.5


def test_second_check_in_same_day_conflicts(session, org):
    actor = resolve_actor(org.it_emp.user)
    check_in(actor, now=datetime(2025, 3, 3, 9, 0))
    with pytest.raises(Conflict):
        check_in(actor, now=datetime(2025, 3, 3, 9, 5))
    # next day is a new row
    check_in(actor, now=datetime(2025, 3, 4, 9, 0))
    assert Attendance.query.filter_by(employee_id=org.it_emp.id).count() == 2


def test_check_out_requires_check_in_and_happens_once(session, org):
    actor = resolve_actor(org.it_emp.user)
    with pytest.raises(PreconditionFailed):
        check_out(actor, now=datetime(2025, 3, 3, 17, 0))
    check_in(actor, now=datetime(2025, 3, 3, 9, 0))
    check_out(actor, now=datetime(2025, 3, 3, 17, 0))
    with pytest.raises(Conflict):
        check_out(actor, now=datetime(2025, 3, 3, 18, 0))


def test_admin_without_profile_records_under_principal_id(session, org):
    row = check_in(resolve_actor(org.admin), now=datetime(2025, 3, 3, 8, 0))
    assert row.employee_id == org.admin.id


def test_manager_without_profile_cannot_record(session, org):
    with pytest.raises(ProfileUnavailable):
        check_in(resolve_actor(org.mkt_mgr), now=datetime(2025, 3, 3, 8, 0))


def test_endpoints(client, org):
    headers = auth(org.it_emp.user)
    r = client.post("/api/attendances/check-out", headers=headers)
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "NOT_CHECKED_IN"

    r = client.post("/api/attendances/check-in", headers=headers)
    assert r.status_code == 201
    assert r.get_json()["data"]["date"] == date.today().isoformat()
    assert client.post("/api/attendances/check-in", headers=headers).status_code == 409

    r = client.post("/api/attendances/check-out", headers=headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["check_out_time"] is not None
    assert client.post("/api/attendances/check-out", headers=headers).status_code == 409


def _seed_rows(session, org):
    rows = [
        Attendance(employee_id=org.it_emp.id, date=date(2025, 3, 3),
                   check_in_time=time(9), check_out_time=time(17), work_hour=8),
        Attendance(employee_id=org.it_emp.id, date=date(2025, 4, 1),
                   check_in_time=time(9), check_out_time=time(13), work_hour=4),
        Attendance(employee_id=org.mkt_emp.id, date=date(2025, 3, 4),
                   check_in_time=time(8), check_out_time=time(17), work_hour=9),
    ]
    session.add_all(rows)
    session.commit()


def test_own_list_with_month_filter(client, session, org):
    _seed_rows(session, org)
    r = client.get("/api/attendances/me?month=2025-03", headers=auth(org.it_emp.user))
    data = r.get_json()["data"]
    assert [x["date"] for x in data] == ["2025-03-03"]
    assert data[0]["work_hour_display"] == "08:00"

    r = client.get("/api/attendances/me?month=March", headers=auth(org.it_emp.user))
    assert r.status_code == 422


def test_privileged_list_scope_and_filters(client, session, org):
    _seed_rows(session, org)
    r = client.get("/api/attendances", headers=auth(org.it_mgr))
    assert {x["employee_name"] for x in r.get_json()["data"]} == {"Budi Santoso"}

    r = client.get("/api/attendances?min_hours=8.5", headers=auth(org.admin))
    assert [x["employee_name"] for x in r.get_json()["data"]] == ["Maya Putri"]

    r = client.get(f"/api/attendances?employee_id={org.it_emp.id}&month=2025-04", headers=auth(org.admin))
    assert [x["date"] for x in r.get_json()["data"]] == ["2025-04-01"]

    r = client.get("/api/attendances", headers=auth(org.it_emp.user))
    assert r.status_code == 403


def test_racing_check_in_hits_unique_constraint(client, session, org, monkeypatch):
    session.add(Attendance(employee_id=org.it_emp.id, date=date.today(), check_in_time=time(8), work_hour=0))
    session.commit()
    # the lookup misses the row another request just wrote
    monkeypatch.setattr(attendance_service, "_day_row", lambda sid, day: None)

    r = client.post("/api/attendances/check-in", headers=auth(org.it_emp.user))
    assert r.status_code == 409
    assert r.get_json()["error"]["code"] == "CONFLICT"
    assert Attendance.query.filter_by(employee_id=org.it_emp.id, date=date.today()).count() == 1


def test_managers_do_not_record_own_attendance(client, org):
    headers = auth(org.it_mgr)
    assert client.post("/api/attendances/check-in", headers=headers).status_code == 403
    assert client.post("/api/attendances/check-out", headers=headers).status_code == 403
    assert client.get("/api/attendances/me", headers=headers).status_code == 403
