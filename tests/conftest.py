from datetime import date
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from hris_api import create_app
from hris_api.extensions import db
from hris_api.models.employee import Employee, EmploymentStatus
from hris_api.models.master import Department
from hris_api.models.user import Role, User


@pytest.fixture(scope="function")
def app(tmp_path):
    app = create_app("hris_api.config.TestingConfig")
    app.config["LEAVE_PHOTO_ROOT"] = str(tmp_path / "leave_photos")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def session(app):
    yield db.session


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


def make_user(role=Role.EMPLOYEE, name=None, email=None, password="secret123", active=True, uid=None):
    n = User.query.count() + 1
    u = User(
        id=uid,
        name=name or f"User {n}",
        email=email or f"user{n}@example.test",
        role=role,
        status_active=active,
    )
    u.set_password(password)
    db.session.add(u)
    db.session.commit()
    return u


def make_department(name, manager=None):
    d = Department(name=name, manager_id=manager.id if manager else None)
    db.session.add(d)
    db.session.commit()
    return d


def make_employee(department, user=None, role=Role.EMPLOYEE, name=None, position="Staff"):
    user = user or make_user(role=role, name=name)
    e = Employee(
        user_id=user.id,
        department_id=department.id,
        employee_code=f"T-{user.id:03d}",
        position=position,
        join_date=date(2024, 1, 15),
        employment_status=EmploymentStatus.PERMANENT,
    )
    db.session.add(e)
    db.session.commit()
    return e


def auth(user):
    token = create_access_token(identity=str(user.id), additional_claims={"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def org(session):
    """
    Small organisation:
      admin          Admin HR without an employee profile
      admin2         Admin HR with a profile in Human Resources
      it_mgr         manages IT (has a profile in IT)
      mkt_mgr        manages Marketing (no profile)
      it_emp         employee in IT
      mkt_emp        employee in Marketing
      loose          employee principal without a profile
    """
    # a high id keeps the aliased subject id clear of employee ids
    admin = make_user(Role.ADMIN_HR, name="Admin One", email="admin@example.test", uid=900)
    admin2 = make_user(Role.ADMIN_HR, name="Admin Two", email="admin2@example.test")
    it_mgr = make_user(Role.MANAGER, name="IT Manager", email="it.mgr@example.test")
    mkt_mgr = make_user(Role.MANAGER, name="Marketing Manager", email="mkt.mgr@example.test")

    hr = make_department("Human Resources", manager=admin)
    it = make_department("IT", manager=it_mgr)
    mkt = make_department("Marketing", manager=mkt_mgr)

    admin2_emp = make_employee(hr, user=admin2, position="HR Generalist")
    it_mgr_emp = make_employee(it, user=it_mgr, position="IT Manager")
    it_emp = make_employee(it, name="Budi Santoso", position="Backend Developer")
    mkt_emp = make_employee(mkt, name="Maya Putri", position="Content Creator")
    loose = make_user(Role.EMPLOYEE, name="No Profile", email="loose@example.test")

    return SimpleNamespace(
        admin=admin, admin2=admin2, admin2_emp=admin2_emp,
        it_mgr=it_mgr, it_mgr_emp=it_mgr_emp, mkt_mgr=mkt_mgr,
        hr=hr, it=it, mkt=mkt,
        it_emp=it_emp, mkt_emp=mkt_emp, loose=loose,
    )
