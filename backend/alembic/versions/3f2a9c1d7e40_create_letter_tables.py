"""create departments, users and letters tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 10:12:41.208415

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_departments_code"), "departments", ["code"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, comment="department | record_office | minister"),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, comment="active | suspended"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["department_id"], ["departments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "letters",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("document_path", sa.String(length=500), nullable=False, comment="MinIO 객체 경로"),
        sa.Column("document_name", sa.String(length=255), nullable=False, comment="원본 파일명"),
        sa.Column("document_type", sa.String(length=150), nullable=False),
        sa.Column("document_size", sa.Integer(), nullable=False, comment="바이트"),
        sa.Column("from_department_id", sa.Integer(), nullable=True),
        sa.Column("to_department_id", sa.Integer(), nullable=True),
        sa.Column("requires_minister", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("created_by_user_id", sa.Integer(), nullable=False),
        sa.Column("reviewed_by_admin_id", sa.Integer(), nullable=True),
        sa.Column("minister_decision", sa.String(length=20), nullable=True, comment="approved | rejected"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("minister_decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["from_department_id"], ["departments.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["to_department_id"], ["departments.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewed_by_admin_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_letters_from_department_id"), "letters", ["from_department_id"], unique=False)
    op.create_index(op.f("ix_letters_to_department_id"), "letters", ["to_department_id"], unique=False)
    op.create_index(op.f("ix_letters_status"), "letters", ["status"], unique=False)
    op.create_index(op.f("ix_letters_created_by_user_id"), "letters", ["created_by_user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_letters_created_by_user_id"), table_name="letters")
    op.drop_index(op.f("ix_letters_status"), table_name="letters")
    op.drop_index(op.f("ix_letters_to_department_id"), table_name="letters")
    op.drop_index(op.f("ix_letters_from_department_id"), table_name="letters")
    op.drop_table("letters")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    op.drop_index(op.f("ix_departments_code"), table_name="departments")
    op.drop_table("departments")
