"""Create users, repositories, modules, entities, properties and audit_logs

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

Column rationale lives in docmeta/models/*.py.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*names: str):
    return [
        sa.Column(
            name,
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        )
        for name in names
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fullname", sa.String(32), nullable=False),
        sa.Column("email", sa.String(128), nullable=False),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "repositories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("visibility", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "repositories_members",
        sa.Column("repository_id", sa.Integer(), sa.ForeignKey("repositories.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.PrimaryKeyConstraint("repository_id", "user_id"),
    )

    op.create_table(
        "modules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.BigInteger(), server_default=sa.text("1"), nullable=False),
        sa.Column("repository_id", sa.Integer(), sa.ForeignKey("repositories.id"), nullable=False),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps("created_at"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_modules_repository_id", "modules", ["repository_id"])

    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(16), nullable=False, comment="struct, exception or union"),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("namespace", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "locker_id",
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=True,
            comment="User currently editing this entity; NULL when unlocked",
        ),
        sa.Column("repository_id", sa.Integer(), sa.ForeignKey("repositories.id"), nullable=True),
        sa.Column("module_id", sa.Integer(), sa.ForeignKey("modules.id"), nullable=True),
        sa.Column("priority", sa.BigInteger(), server_default=sa.text("1"), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("type IN ('struct', 'exception', 'union')", name="ck_entities_type"),
    )
    op.create_index("idx_entities_repository_id", "entities", ["repository_id"])
    op.create_index("idx_entities_module_id", "entities", ["module_id"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_id", sa.Integer(), sa.ForeignKey("entities.id"), nullable=False),
        sa.Column("scope", sa.String(16), server_default=sa.text("'response'"), nullable=False),
        sa.Column("parent_id", sa.Integer(), server_default=sa.text("-1"), nullable=True),
        sa.Column("priority", sa.BigInteger(), server_default=sa.text("1"), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("type", sa.String(16), server_default=sa.text("'String'"), nullable=False),
        sa.Column("rule", sa.String(128), nullable=True),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("required", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("pos", sa.Integer(), server_default=sa.text("2"), nullable=False),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps("created_at", "updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("scope IN ('request', 'response')", name="ck_properties_scope"),
    )
    op.create_index("idx_properties_entity_id", "properties", ["entity_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("repository_id", sa.Integer(), nullable=True),
        sa.Column("module_id", sa.Integer(), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_audit_logs_entity_id", "audit_logs", ["entity_id"])


def downgrade() -> None:
    """Drops every table. Destructive: all documentation metadata is lost."""
    op.drop_index("idx_audit_logs_entity_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("idx_properties_entity_id", table_name="properties")
    op.drop_table("properties")
    op.drop_index("idx_entities_module_id", table_name="entities")
    op.drop_index("idx_entities_repository_id", table_name="entities")
    op.drop_table("entities")
    op.drop_index("ix_modules_repository_id", table_name="modules")
    op.drop_table("modules")
    op.drop_table("repositories_members")
    op.drop_table("repositories")
    op.drop_table("users")
