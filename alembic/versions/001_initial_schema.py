"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "versions" in existing_tables:
        return

    op.create_table(
        "landings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=True),
        sa.Column("current_version_id", sa.String(64), nullable=True),
        sa.Column("current_version_number", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "versions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("landing_id", sa.String(64), nullable=False),
        sa.Column("sequence_number", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("tag", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("size_bytes", sa.Integer, nullable=True),
        sa.Column("linked_audit_id", sa.String(64), nullable=True),
        sa.UniqueConstraint("landing_id", "sequence_number", name="uq_versions_landing_sequence"),
    )
    op.create_index("ix_versions_landing_id", "versions", ["landing_id"])

    op.create_table(
        "version_counters",
        sa.Column("landing_id", sa.String(64), primary_key=True),
        sa.Column("last_sequence", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("landing_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("actor", sa.String(200), nullable=True),
        sa.Column("details", sa.Text, nullable=True),
        sa.Column("version_ids_json", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_audit_log_landing_id", "audit_log", ["landing_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_log_landing_id", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("version_counters")
    op.drop_index("ix_versions_landing_id", table_name="versions")
    op.drop_table("versions")
    op.drop_table("landings")
