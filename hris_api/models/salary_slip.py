# hris_api/models/salary_slip.py
from datetime import datetime

from hris_api.extensions import db


class SalarySlip(db.Model):
    __tablename__ = "salary_slips"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    period_month = db.Column(db.String(20), nullable=False)

    basic_salary = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    allowance    = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    deduction    = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_salary = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    remarks = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "period_month", name="uq_salary_slip_employee_period"),
    )

    employee = db.relationship("Employee", back_populates="salary_slips")
    creator = db.relationship("User", foreign_keys=[created_by])
