# hris_api/services/storage.py
import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from hris_api.common.errors import ValidationFailed

log = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
MAX_PHOTO_BYTES = 2 * 1024 * 1024


def _root() -> str:
    return current_app.config["LEAVE_PHOTO_ROOT"]


def photo_path(name: str) -> str:
    return os.path.join(_root(), secure_filename(name))


def validate_photo(file_storage) -> str:
    """Check type and size of an upload; returns its lowercased extension."""
    ext = os.path.splitext(secure_filename(file_storage.filename or ""))[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed({"photo": ["The photo must be a jpg, jpeg or png file."]})

    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    if size > MAX_PHOTO_BYTES:
        raise ValidationFailed({"photo": ["The photo may not be greater than 2048 kilobytes."]})
    return ext


def store_photo(file_storage, prefix) -> str:
    """Save an uploaded photo under a generated name and return that name."""
    ext = validate_photo(file_storage)

    os.makedirs(_root(), exist_ok=True)
    name = f"{prefix}_{uuid.uuid4().hex}{ext}"
    file_storage.save(photo_path(name))
    log.info("stored leave photo %s", name)
    return name


def delete_photo(name):
    if not name:
        return
    path = photo_path(name)
    if os.path.exists(path):
        os.remove(path)
        log.info("deleted leave photo %s", name)
