"""Create users, RBAC, catalogs, tracking, solutions, resources and audit tables"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from database.types import UUIDType


# revision identifiers, used by Alembic.
revision = "20260901_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, UUIDType(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def _catalog_table(name: str, *extra: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *extra,
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def _attachment_columns(parent_key: str, parent_table: str, progress_table: str | None) -> list[sa.Column]:
    columns = [
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column(parent_key, UUIDType(), sa.ForeignKey(f"{parent_table}.id", ondelete="CASCADE"), nullable=True),
    ]
    if progress_table:
        columns.append(
            sa.Column("progress_id", UUIDType(), sa.ForeignKey(f"{progress_table}.id", ondelete="CASCADE"), nullable=True)
        )
    columns.extend(
        [
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column("file_url", sa.String(length=1024), nullable=False),
            sa.Column("file_path", sa.String(length=1024), nullable=True),
            sa.Column("file_type", sa.String(length=128), nullable=True),
            sa.Column("file_size", sa.BigInteger(), nullable=True),
            _user_fk("uploaded_by"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        ]
    )
    return columns


def _tracked_columns(type_key: str, type_table: str) -> list[sa.Column]:
    return [
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("application_id", UUIDType(), sa.ForeignKey("applications.id", ondelete="SET NULL"), nullable=True),
        sa.Column("category_id", UUIDType(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column(type_key, UUIDType(), sa.ForeignKey(f"{type_table}.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status_id", UUIDType(), sa.ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True),
        _user_fk("responsible_id"),
        _user_fk("created_by"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    ]


def _progress_table(name: str, parent_key: str, parent_table: str) -> None:
    op.create_table(
        name,
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column(parent_key, UUIDType(), sa.ForeignKey(f"{parent_table}.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("committee_notes", sa.Text(), nullable=True),
        _user_fk("created_by"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(f"ix_{name}_{parent_key}", name, [parent_key])


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=1024), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_superuser", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="Consulta"),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "casbin_rule",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ptype", sa.String(length=255), nullable=False),
        sa.Column("v0", sa.String(length=255), nullable=True),
        sa.Column("v1", sa.String(length=255), nullable=True),
        sa.Column("v2", sa.String(length=255), nullable=True),
        sa.Column("v3", sa.String(length=255), nullable=True),
        sa.Column("v4", sa.String(length=255), nullable=True),
        sa.Column("v5", sa.String(length=255), nullable=True),
    )
    op.create_index("idx_casbin_rule", "casbin_rule", ["ptype", "v0", "v1", "v2", "v3"])

    _catalog_table("applications", sa.Column("color", sa.String(length=32), nullable=True))
    _catalog_table("categories")
    _catalog_table("case_types")
    _catalog_table("test_types")
    _catalog_table(
        "statuses",
        sa.Column("color", sa.String(length=32), nullable=True),
        sa.Column("is_final", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table("cases", *_tracked_columns("case_type_id", "case_types"))
    op.create_index("ix_cases_status", "cases", ["status_id"])
    op.create_index("ix_cases_responsible", "cases", ["responsible_id"])

    op.create_table(
        "tests",
        *_tracked_columns("test_type_id", "test_types"),
        sa.Column("case_id", UUIDType(), sa.ForeignKey("cases.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_tests_status", "tests", ["status_id"])
    op.create_index("ix_tests_case", "tests", ["case_id"])

    _progress_table("case_progress", "case_id", "cases")
    _progress_table("test_progress", "test_id", "tests")

    op.create_table("case_attachments", *_attachment_columns("case_id", "cases", "case_progress"))
    op.create_index("ix_case_attachments_case_id", "case_attachments", ["case_id"])
    op.create_table("test_attachments", *_attachment_columns("test_id", "tests", "test_progress"))
    op.create_index("ix_test_attachments_test_id", "test_attachments", ["test_id"])

    op.create_table(
        "solutions",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("case_id", UUIDType(), sa.ForeignKey("cases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("findings", sa.Text(), nullable=True),
        sa.Column("steps_to_reproduce", sa.Text(), nullable=True),
        sa.Column("steps_to_resolve", sa.Text(), nullable=False),
        sa.Column("final_result", sa.Text(), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("spl_app_url", sa.String(length=1024), nullable=True),
        sa.Column("additional_app_url", sa.String(length=1024), nullable=True),
        sa.Column("necessary_app", sa.String(length=255), nullable=True),
        sa.Column("necessary_firmware", sa.String(length=255), nullable=True),
        sa.Column("tests_performed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _user_fk("created_by"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_solutions_case_id", "solutions", ["case_id"])

    op.create_table(
        "solution_tests",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("solution_id", UUIDType(), sa.ForeignKey("solutions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("test_id", UUIDType(), sa.ForeignKey("tests.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("solution_id", "test_id", name="uq_solution_tests"),
    )

    op.create_table("solution_attachments", *_attachment_columns("solution_id", "solutions", None))
    op.create_index("ix_solution_attachments_solution_id", "solution_attachments", ["solution_id"])

    op.create_table(
        "solution_resources",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("solution_id", UUIDType(), sa.ForeignKey("solutions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="document"),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("folder", sa.String(length=255), nullable=False, server_default="General"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        _user_fk("created_by"),
        sa.Column("share_token", sa.String(length=128), nullable=True),
        sa.Column("share_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("share_permission", sa.String(length=32), nullable=False, server_default="public"),
        sa.Column("share_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_solution_resources_folder", "solution_resources", ["folder"])
    op.create_index("ix_solution_resources_share_token", "solution_resources", ["share_token"], unique=True)

    op.create_table(
        "resource_folders",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("icon", sa.String(length=16), nullable=True),
        sa.Column("color", sa.String(length=32), nullable=True),
        _user_fk("created_by"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_resource_folders_name", "resource_folders", ["name"])

    op.create_table(
        "audit_log",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("record_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("old_record", sa.JSON(), nullable=True),
        sa.Column("new_record", sa.JSON(), nullable=True),
        sa.Column("changed_by", UUIDType(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_log_record", "audit_log", ["table_name", "record_id", "created_at"])
    op.create_index("ix_audit_log_actor", "audit_log", ["changed_by", "created_at"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("resource_folders")
    op.drop_table("solution_resources")
    op.drop_table("solution_attachments")
    op.drop_table("solution_tests")
    op.drop_table("solutions")
    op.drop_table("test_attachments")
    op.drop_table("case_attachments")
    op.drop_table("test_progress")
    op.drop_table("case_progress")
    op.drop_table("tests")
    op.drop_table("cases")
    for name in ("statuses", "test_types", "case_types", "categories", "applications"):
        op.drop_table(name)
    op.drop_index("idx_casbin_rule", table_name="casbin_rule")
    op.drop_table("casbin_rule")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
