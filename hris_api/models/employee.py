# hris_api/models/employee.py
import enum
from datetime import datetime

from hris_api.extensions import db
from hris_api.models.user import enum_values


class EmploymentStatus(str, enum.Enum):
    PERMANENT = "permanent"
    CONTRACT = "contract"
    INTERN = "intern"
    RESIGNED = "resigned"


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    user_id       = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False)

    employee_code = db.Column(db.String(32), nullable=False, unique=True)
    position      = db.Column(db.String(100), nullable=False)
    join_date     = db.Column(db.Date, nullable=False)
    employment_status = db.Column(
        db.Enum(EmploymentStatus, name="employment_status", values_callable=enum_values),
        nullable=False, default=EmploymentStatus.PERMANENT,
    )
    contact = db.Column(db.String(50))

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_emp_dept_id", "department_id"),
    )

    user       = db.relationship("User", back_populates="employee", lazy="joined")
    department = db.relationship("Department", back_populates="employees", lazy="joined")

    # attendance and leave rows carry a subject id that may alias a principal
    # id, so they join without a database foreign key
    attendances = db.relationship(
        "Attendance",
        primaryjoin="Employee.id == foreign(Attendance.employee_id)",
        back_populates="employee",
        cascade="all, delete",
    )
    leave_requests = db.relationship(
        "LeaveRequest",
        primaryjoin="Employee.id == foreign(LeaveRequest.employee_id)",
        back_populates="employee",
        cascade="all, delete",
    )
    performance_reviews = db.relationship("PerformanceReview", back_populates="employee", cascade="all, delete")
    salary_slips = db.relationship("SalarySlip", back_populates="employee", cascade="all, delete")

    @property
    def name(self):
        return self.user.name if self.user else None
