# hris_api/models/user.py
import enum
from datetime import datetime

from werkzeug.security import generate_password_hash, check_password_hash

from hris_api.extensions import db


class Role(str, enum.Enum):
    ADMIN_HR = "admin_hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return None


def enum_values(e):
    return [m.value for m in e]


class User(db.Model):
    __tablename__ = "users"

    id            = db.Column(db.Integer, primary_key=True)
    name          = db.Column(db.String(255), nullable=False)
    email         = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.Enum(Role, name="user_role", values_callable=enum_values),
                              nullable=False, default=Role.EMPLOYEE)
    status_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at    = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at    = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = db.relationship("Employee", back_populates="user", uselist=False)

    # --- helpers ---
    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    @property
    def is_admin_hr(self):
        return self.role is Role.ADMIN_HR

    @property
    def is_manager(self):
        return self.role is Role.MANAGER
