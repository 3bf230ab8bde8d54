from conftest import auth, make_user
from hris_api.models.master import Department
from hris_api.models.user import Role


def test_create_and_show(client, org):
    r = client.post(
        "/api/departments",
        json={"name": "Finance", "description": "Money", "manager_id": org.mkt_mgr.id},
        headers=auth(org.admin),
    )
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["manager"]["name"] == "Marketing Manager"
    assert data["employee_count"] == 0

    r = client.get(f"/api/departments/{data['id']}", headers=auth(org.it_emp.user))
    assert r.status_code == 200
    assert r.get_json()["data"]["manager_id"] == org.mkt_mgr.id


def test_duplicate_name_is_conflict(client, org):
    r = client.post("/api/departments", json={"name": "it"}, headers=auth(org.admin))
    assert r.status_code == 409


def test_manager_must_have_manager_or_admin_role(client, org):
    r = client.post(
        "/api/departments",
        json={"name": "Legal", "manager_id": org.it_emp.user_id},
        headers=auth(org.admin),
    )
    assert r.status_code == 422
    assert "manager_id" in r.get_json()["error"]["errors"]

    r = client.post("/api/departments", json={"name": "Legal", "manager_id": org.admin2.id}, headers=auth(org.admin))
    assert r.status_code == 201


def test_reassigning_manager_changes_scope(client, org):
    new_mgr = make_user(Role.MANAGER, name="New Boss", email="boss@example.test")
    r = client.put(f"/api/departments/{org.it.id}", json={"manager_id": new_mgr.id}, headers=auth(org.admin))
    assert r.status_code == 200

    r = client.get("/api/employees", headers=auth(new_mgr))
    assert sorted(x["name"] for x in r.get_json()["data"]) == ["Budi Santoso", "IT Manager"]
    r = client.get("/api/employees", headers=auth(org.it_mgr))
    assert r.get_json()["data"] == []


def test_delete_rules(client, session, org):
    r = client.delete(f"/api/departments/{org.it.id}", headers=auth(org.admin))
    assert r.status_code == 409

    empty = Department(name="Empty")
    session.add(empty)
    session.commit()
    r = client.delete(f"/api/departments/{empty.id}", headers=auth(org.admin))
    assert r.status_code == 200
    assert client.get(f"/api/departments/{empty.id}", headers=auth(org.admin)).status_code == 404


def test_list_search_and_writes_need_admin(client, org):
    r = client.get("/api/departments?search=market", headers=auth(org.it_emp.user))
    assert [d["name"] for d in r.get_json()["data"]] == ["Marketing"]
    assert r.get_json()["meta"]["total"] == 1

    assert client.post("/api/departments", json={"name": "X"}, headers=auth(org.it_mgr)).status_code == 403
