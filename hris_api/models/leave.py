# hris_api/models/leave.py
import enum
from datetime import datetime

from hris_api.extensions import db
from hris_api.models.user import enum_values


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveRequest(db.Model):
    __tablename__ = "leave_requests"

    id = db.Column(db.Integer, primary_key=True)
    # Employee.id, or the principal id of an AdminHR without a profile
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    total_days = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text)
    status = db.Column(db.Enum(LeaveStatus, name="leave_status", values_callable=enum_values),
                       nullable=False, default=LeaveStatus.PENDING)

    reviewed_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = db.Column(db.DateTime)
    reviewer_note = db.Column(db.String(500))
    photo = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_leave_emp_range", "employee_id", "start_date", "end_date"),
    )

    employee = db.relationship(
        "Employee",
        primaryjoin="foreign(LeaveRequest.employee_id) == Employee.id",
        back_populates="leave_requests",
    )
    reviewer = db.relationship("User", foreign_keys=[reviewed_by])

    @staticmethod
    def span_days(start, end):
        return (end - start).days + 1
