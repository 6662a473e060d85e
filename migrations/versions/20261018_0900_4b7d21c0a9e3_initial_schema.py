"""initial schema

Revision ID: 4b7d21c0a9e3
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4b7d21c0a9e3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'workspaces',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'parents',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('first_name', sa.String(64), nullable=False),
        sa.Column('last_name', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32)),
        sa.Column('current_balance', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('workspace_id', 'email', name='uq_parent_workspace_email'),
    )
    op.create_index('ix_parents_workspace_id', 'parents', ['workspace_id'])

    op.create_table(
        'students',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('parent_id', _uuid(), sa.ForeignKey('parents.id')),
        sa.Column('first_name', sa.String(64), nullable=False),
        sa.Column('last_name', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(32)),
        sa.Column('school', sa.String(255)),
        sa.Column('grade_year', sa.String(32)),
        sa.Column('subjects', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.Date()),
        sa.Column('status', sa.String(16), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active','inactive')", name='ck_student_status'),
    )
    op.create_index('ix_students_workspace_id', 'students', ['workspace_id'])
    op.create_index('ix_students_parent_id', 'students', ['parent_id'])

    op.create_table(
        'employees',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('first_name', sa.String(64), nullable=False),
        sa.Column('last_name', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(32)),
        sa.Column('position_title', sa.String(128)),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('hire_date', sa.Date()),
        sa.Column('lesson_wage_type', sa.String(16), nullable=False),
        sa.Column('custom_wage', sa.Numeric(12, 2)),
        sa.Column('subjects', sa.JSON(), nullable=False),
        sa.Column('bio', sa.Text()),
        *_timestamps(),
        sa.CheckConstraint("type IN ('tutor','admin')", name='ck_employee_type'),
        sa.CheckConstraint("lesson_wage_type IN ('custom','service-based')", name='ck_employee_wage_type'),
        sa.CheckConstraint("status IN ('active','inactive')", name='ck_employee_status'),
    )
    op.create_index('ix_employees_workspace_id', 'employees', ['workspace_id'])

    op.create_table(
        'users',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id')),
        sa.Column('student_id', _uuid(), sa.ForeignKey('students.id', ondelete='SET NULL')),
        sa.Column('parent_id', _uuid(), sa.ForeignKey('parents.id', ondelete='SET NULL')),
        sa.Column('employee_id', _uuid(), sa.ForeignKey('employees.id', ondelete='SET NULL')),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('last_login', sa.DateTime()),
        sa.CheckConstraint("role IN ('admin','tutor','parent','student')", name='ck_user_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_workspace_id', 'users', ['workspace_id'])

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('purpose', sa.String(16), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.Column('created_ip', sa.String(45)),
        sa.Column('used_ip', sa.String(45)),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime()),
        sa.CheckConstraint("purpose IN ('invite','reset')", name='ck_password_reset_purpose'),
    )
    op.create_index('ix_password_reset_tokens_user_id', 'password_reset_tokens', ['user_id'])
    op.create_index('ix_password_reset_tokens_token', 'password_reset_tokens', ['token'], unique=True)
    op.create_index('ix_password_reset_tokens_expires_at', 'password_reset_tokens', ['expires_at'])
    op.create_index('ix_password_reset_tokens_used', 'password_reset_tokens', ['used'])

    op.create_table(
        'services',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('rate_per_hour', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost_per_hour', sa.Numeric(12, 2)),
        *_timestamps(),
        sa.CheckConstraint('rate_per_hour >= 0', name='ck_service_rate_positive'),
    )
    op.create_index('ix_services_workspace_id', 'services', ['workspace_id'])

    op.create_table(
        'locations',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('address', sa.String(255)),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_locations_workspace_id', 'locations', ['workspace_id'])

    op.create_table(
        'invoices',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('student_id', _uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('invoice_number', sa.String(32), nullable=False),
        sa.Column('amount_due', sa.Numeric(12, 2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date()),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('description', sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft','pending','sent','paid','overdue','cancelled')",
            name='ck_invoice_status'
        ),
        sa.CheckConstraint('amount_due >= 0', name='ck_invoice_amount_due_positive'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_invoice_amount_paid_positive'),
        sa.UniqueConstraint('workspace_id', 'invoice_number', name='uq_invoice_workspace_number'),
    )
    op.create_index('ix_invoices_workspace_id', 'invoices', ['workspace_id'])

    op.create_table(
        'lessons',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('tutor_id', _uuid(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('student_id', _uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('service_id', _uuid(), sa.ForeignKey('services.id', ondelete='SET NULL')),
        sa.Column('location_id', _uuid(), sa.ForeignKey('locations.id', ondelete='SET NULL')),
        sa.Column('invoice_id', _uuid(), sa.ForeignKey('invoices.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255)),
        sa.Column('description', sa.Text()),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('rate', sa.Numeric(12, 2)),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('billing_status', sa.String(16), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('scheduled','completed','canceled')", name='ck_lesson_status'),
        sa.CheckConstraint("billing_status IN ('unbilled','invoiced','paid')", name='ck_lesson_billing_status'),
        sa.CheckConstraint('duration_minutes IS NULL OR duration_minutes >= 0', name='ck_lesson_duration_positive'),
    )
    op.create_index('ix_lessons_workspace_id', 'lessons', ['workspace_id'])
    op.create_index('ix_lessons_invoice_id', 'lessons', ['invoice_id'])
    op.create_index('ix_lessons_workspace_start', 'lessons', ['workspace_id', 'start_time'])
    op.create_index('ix_lessons_workspace_billing', 'lessons', ['workspace_id', 'billing_status'])

    op.create_table(
        'invoice_line_items',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workspace_id', _uuid(), sa.ForeignKey('workspaces.id'), nullable=False),
        sa.Column('invoice_id', _uuid(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', _uuid(), sa.ForeignKey('lessons.id'), nullable=False, unique=True),
        sa.Column('service_id', _uuid(), sa.ForeignKey('services.id', ondelete='SET NULL')),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('rate', sa.Numeric(12, 2), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('subtotal >= 0', name='ck_line_item_subtotal_positive'),
    )
    op.create_index('ix_invoice_line_items_workspace_id', 'invoice_line_items', ['workspace_id'])
    op.create_index('ix_line_items_workspace_invoice', 'invoice_line_items', ['workspace_id', 'invoice_id'])


def downgrade():
    for table in (
        'invoice_line_items',
        'lessons',
        'invoices',
        'locations',
        'services',
        'password_reset_tokens',
        'users',
        'employees',
        'students',
        'parents',
        'workspaces',
    ):
        op.drop_table(table)
