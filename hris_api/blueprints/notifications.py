# hris_api/blueprints/notifications.py
from flask import Blueprint, request

from hris_api.common.auth import login_required, roles_required
from hris_api.common.errors import NotFound, ValidationFailed
from hris_api.common.http import ok
from hris_api.common.paging import int_arg, page_size, paginate
from hris_api.extensions import db
from hris_api.models.notification import Notification
from hris_api.models.user import Role, User
from hris_api.services import notifications as notify_svc
from hris_api.services.policies import deny, ensure

bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _row(n: Notification):
    return {
        "id": n.id,
        "type": n.type,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


def _detail(n: Notification):
    return {**_row(n), "user_id": n.user_id, "updated_at": n.updated_at.isoformat() if n.updated_at else None}


def _get_owned(current_user: User, notif_id: int) -> Notification:
    n = db.session.get(Notification, notif_id)
    if not n:
        raise NotFound("Notification not found")
    if n.user_id != current_user.id and not current_user.is_admin_hr:
        ensure(deny("not_visible"), "access notification")
    return n


def _clean(data: dict) -> tuple:
    type_ = (str(data.get("type") or notify_svc.GENERAL)).strip()
    message = (str(data.get("message") or "")).strip()
    errors = {}
    if not message:
        errors["message"] = ["The message field is required."]
    if len(type_) > 50:
        errors["type"] = ["The type may not be greater than 50 characters."]
    if errors:
        raise ValidationFailed(errors)
    return type_, message


def _own(current_user: User):
    return Notification.query.filter_by(user_id=current_user.id).order_by(
        Notification.created_at.desc(), Notification.id.desc()
    )


@bp.get("/me")
@login_required
def mine(current_user: User):
    page, size = page_size(max_size=50)
    items, meta = paginate(_own(current_user), page, size)
    unread = Notification.query.filter_by(user_id=current_user.id, is_read=False).count()
    return ok([_row(n) for n in items], **meta, unread_count=unread)


@bp.get("/unread")
@login_required
def unread(current_user: User):
    items = _own(current_user).filter(Notification.is_read.is_(False)).all()
    return ok([_row(n) for n in items], unread_count=len(items))


@bp.put("/read-all")
@login_required
def read_all(current_user: User):
    count = (
        Notification.query
        .filter_by(user_id=current_user.id, is_read=False)
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.commit()
    return ok({"updated": count}, message="All notifications marked as read")


@bp.get("")
@login_required
def list_notifications(current_user: User):
    qry = Notification.query
    if current_user.is_admin_hr:
        uid = int_arg(request.args, "user_id")
        if uid is not None:
            qry = qry.filter(Notification.user_id == uid)
    else:
        qry = qry.filter(Notification.user_id == current_user.id)
    type_ = (request.args.get("type") or "").strip()
    if type_:
        qry = qry.filter(Notification.type == type_)
    is_read = (request.args.get("is_read") or "").lower()
    if is_read in ("true", "1", "false", "0"):
        qry = qry.filter(Notification.is_read.is_(is_read in ("true", "1")))
    qry = qry.order_by(Notification.created_at.desc(), Notification.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    return ok([_detail(n) if current_user.is_admin_hr else _row(n) for n in items], **meta)


@bp.post("")
@roles_required(Role.ADMIN_HR)
def create(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    type_, message = _clean(data)
    try:
        user = db.session.get(User, int(data.get("user_id")))
    except (TypeError, ValueError):
        user = None
    if user is None:
        raise ValidationFailed({"user_id": ["The selected user is invalid."]})
    n = notify_svc.notify(user.id, type_, message)
    db.session.commit()
    return ok(_detail(n), 201, message="Notification sent")


@bp.post("/broadcast")
@roles_required(Role.ADMIN_HR)
def broadcast(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    type_, message = _clean(data)
    count = notify_svc.broadcast(type_, message)
    db.session.commit()
    return ok({"recipients": count}, 201, message="Notification broadcast")


@bp.get("/<int:notif_id>")
@login_required
def show(current_user: User, notif_id: int):
    return ok(_detail(_get_owned(current_user, notif_id)))


@bp.put("/<int:notif_id>/read")
@login_required
def mark_read(current_user: User, notif_id: int):
    n = _get_owned(current_user, notif_id)
    n.is_read = True
    db.session.commit()
    return ok(_detail(n), message="Notification marked as read")


@bp.delete("/<int:notif_id>")
@login_required
def delete(current_user: User, notif_id: int):
    n = _get_owned(current_user, notif_id)
    db.session.delete(n)
    db.session.commit()
    return ok({"id": notif_id}, message="Notification deleted")
