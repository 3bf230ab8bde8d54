"""initial hris schema

Revision ID: 4f1a2b3c9d10
Revises:
Create Date: 2025-11-10 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1a2b3c9d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('admin_hr', 'manager', 'employee', name='user_role')
employment_status = sa.Enum('permanent', 'contract', 'intern', 'resigned', name='employment_status')
leave_status = sa.Enum('Pending', 'Approved', 'Rejected', name='leave_status')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('status_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_departments_manager_id', 'departments', ['manager_id'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('employee_code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('position', sa.String(length=100), nullable=False),
        sa.Column('join_date', sa.Date(), nullable=False),
        sa.Column('employment_status', employment_status, nullable=False),
        sa.Column('contact', sa.String(length=50), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_emp_dept_id', 'employees', ['department_id'])

    op.create_table(
        'attendances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in_time', sa.Time(), nullable=True),
        sa.Column('check_out_time', sa.Time(), nullable=True),
        sa.Column('work_hour', sa.Numeric(5, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('employee_id', 'date', name='uq_attendance_employee_date'),
    )
    op.create_index('ix_attendances_employee_id', 'attendances', ['employee_id'])

    op.create_table(
        'leave_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', leave_status, nullable=False),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewer_note', sa.String(length=500), nullable=True),
        sa.Column('photo', sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_leave_requests_employee_id', 'leave_requests', ['employee_id'])
    op.create_index('ix_leave_emp_range', 'leave_requests', ['employee_id', 'start_date', 'end_date'])

    op.create_table(
        'performance_reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reviewer_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('period', sa.String(length=20), nullable=False),
        sa.Column('total_star', sa.Integer(), nullable=False),
        sa.Column('review_description', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_performance_reviews_employee_id', 'performance_reviews', ['employee_id'])
    op.create_index('ix_performance_reviews_reviewer_id', 'performance_reviews', ['reviewer_id'])

    op.create_table(
        'salary_slips',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('period_month', sa.String(length=20), nullable=False),
        sa.Column('basic_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('allowance', sa.Numeric(12, 2), nullable=False),
        sa.Column('deduction', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('employee_id', 'period_month', name='uq_salary_slip_employee_period'),
    )
    op.create_index('ix_salary_slips_employee_id', 'salary_slips', ['employee_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'token_blocklist',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('jti', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_token_blocklist_jti', 'token_blocklist', ['jti'], unique=True)


def downgrade() -> None:
    for table in ('token_blocklist', 'notifications', 'salary_slips', 'performance_reviews',
                  'leave_requests', 'attendances', 'employees', 'departments', 'users'):
        op.drop_table(table)
    bind = op.get_bind()
    for enum in (leave_status, employment_status, user_role):
        enum.drop(bind, checkfirst=True)
