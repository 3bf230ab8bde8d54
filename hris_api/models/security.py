# hris_api/models/security.py
from datetime import datetime

from hris_api.extensions import db


class TokenBlocklist(db.Model):
    """Access tokens revoked through logout."""
    __tablename__ = "token_blocklist"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @classmethod
    def is_revoked(cls, jti) -> bool:
        if not jti:
            return False
        return db.session.query(cls.id).filter_by(jti=jti).first() is not None
