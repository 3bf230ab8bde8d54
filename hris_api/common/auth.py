# hris_api/common/auth.py
from __future__ import annotations

from functools import wraps

from flask_jwt_extended import jwt_required, get_jwt_identity

from hris_api.common.http import fail
from hris_api.extensions import db
from hris_api.models.user import Role, User


def _current_user() -> User | None:
    uid = get_jwt_identity()
    try:
        user_id = int(uid)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def roles_required(*roles: Role):
    """
    Require a valid access token whose principal is active and holds one of
    ``roles`` (any role when none given). The loaded ``User`` is passed to
    the view as its first positional argument.
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            user = _current_user()
            if not user or not user.status_active:
                return fail("Unauthorized", status=401, code="UNAUTHORIZED")
            if roles and user.role not in roles:
                return fail("Forbidden", status=403, code="FORBIDDEN")
            return fn(user, *args, **kwargs)
        return inner
    return outer


login_required = roles_required()


def register_jwt_handlers(jwt):
    """Render flask-jwt-extended failures with the standard envelope."""
    from hris_api.models.security import TokenBlocklist

    @jwt.token_in_blocklist_loader
    def _is_revoked(_header, payload):
        return TokenBlocklist.is_revoked(payload.get("jti"))

    @jwt.unauthorized_loader
    def _missing(reason):
        return fail(reason or "Missing token", status=401, code="UNAUTHORIZED")

    @jwt.invalid_token_loader
    def _invalid(reason):
        return fail(reason or "Invalid token", status=401, code="UNAUTHORIZED")

    @jwt.expired_token_loader
    def _expired(_header, _payload):
        return fail("Token has expired", status=401, code="TOKEN_EXPIRED")

    @jwt.revoked_token_loader
    def _revoked(_header, _payload):
        return fail("Token has been revoked", status=401, code="TOKEN_REVOKED")
