"""initial admins, departments, employees

Revision ID: 4f1a9c2e7b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admin_username_deleted', 'admins', ['username', 'is_deleted'])
    op.create_index('ix_admin_email_deleted', 'admins', ['email', 'is_deleted'])

    # manager_id FK is added after employees exists (mutual reference)
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('employee_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('admins.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('employee_count >= 0', name='ck_department_employee_count_nonneg'),
    )
    op.create_index('ix_department_name_deleted', 'departments', ['name', 'is_deleted'])
    op.create_index('ix_department_code_deleted', 'departments', ['code', 'is_deleted'])
    op.create_index('ix_department_manager_id', 'departments', ['manager_id'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('supervisor_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('admins.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('employee_code', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('position', sa.String(length=120), nullable=False),
        sa.Column('salary', sa.Float(), nullable=True),
        sa.Column('hire_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Probation'),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('salary IS NULL OR salary >= 0', name='ck_employee_salary_nonneg'),
    )
    op.create_index('ix_emp_code_deleted', 'employees', ['employee_code', 'is_deleted'])
    op.create_index('ix_emp_email_deleted', 'employees', ['email', 'is_deleted'])
    op.create_index('ix_emp_dept_deleted', 'employees', ['department_id', 'is_deleted'])
    op.create_index('ix_emp_supervisor_id', 'employees', ['supervisor_id'])

    with op.batch_alter_table('departments') as batch:
        batch.create_foreign_key(
            'fk_departments_manager_id_employees', 'employees',
            ['manager_id'], ['id'], ondelete='SET NULL',
        )


def downgrade() -> None:
    with op.batch_alter_table('departments') as batch:
        batch.drop_constraint('fk_departments_manager_id_employees', type_='foreignkey')
    op.drop_table('employees')
    op.drop_table('departments')
    op.drop_table('admins')
