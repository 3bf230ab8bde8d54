# hris_api/blueprints/auth.py
import logging

from flask import Blueprint, request
from flask_jwt_extended import create_access_token, get_jwt

from hris_api.common.auth import login_required
from hris_api.common.errors import ValidationFailed
from hris_api.common.http import ok, fail
from hris_api.extensions import db
from hris_api.models.security import TokenBlocklist
from hris_api.models.user import User

log = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def user_payload(u: User):
    emp = u.employee
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role.value,
        "status_active": u.status_active,
        "employee_id": emp.id if emp else None,
    }


@bp.post("/login")
def login():
    data = request.get_json(silent=True, force=True)
    if not isinstance(data, dict):
        data = {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        raise ValidationFailed({
            k: [f"The {k} field is required."] for k, v in (("email", email), ("password", password)) if not v
        })

    u = User.query.filter_by(email=email).first()
    if not u or not u.check_password(password):
        log.info("failed login for %s", email)
        return fail("Invalid credentials", status=401, code="INVALID_CREDENTIALS")
    if not u.status_active:
        return fail("This account is inactive", status=403, code="ACCOUNT_INACTIVE")

    claims = {"uid": u.id, "name": u.name, "role": u.role.value}
    token = create_access_token(identity=str(u.id), additional_claims=claims)
    return ok({"access_token": token, "token_type": "Bearer", "user": user_payload(u)}, message="Login successful")


@bp.get("/me")
@login_required
def me(current_user: User):
    return ok(user_payload(current_user))


@bp.post("/logout")
@login_required
def logout(current_user: User):
    jti = get_jwt().get("jti")
    if jti and not TokenBlocklist.is_revoked(jti):
        db.session.add(TokenBlocklist(jti=jti))
        db.session.commit()
    log.info("logout user=%s", current_user.id)
    return ok(None, message="Logged out")
