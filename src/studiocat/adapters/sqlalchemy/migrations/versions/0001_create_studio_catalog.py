"""Create studio catalog tables.

Revision ID: 0001_create_studio_catalog
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_studio_catalog"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "studio",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("identity_key", sa.String(length=255), nullable=False),
        sa.Column("block_key", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("founded_year", sa.Integer(), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("logo", sa.String(length=1024), nullable=True),
        sa.Column("websites", sa.JSON(), nullable=False),
        sa.Column("catalog_items", sa.JSON(), nullable=False),
        sa.Column("technologies", sa.JSON(), nullable=False),
        sa.Column("sources", sa.JSON(), nullable=False),
        sa.Column("source_entity_ids", sa.JSON(), nullable=False),
        sa.Column("founded_date", sa.String(length=32), nullable=True),
        sa.Column("metadata_extra", sa.JSON(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_studio"),
        sa.UniqueConstraint("identity_key", name="uq_studio_identity_key"),
    )
    op.create_index("ix_studio_block_key", "studio", ["block_key"])

    op.create_table(
        "studio_merge_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("studio_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.String(length=64), nullable=False),
        sa.Column("merged_from", sa.Uuid(), nullable=False),
        sa.Column("merged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("conflict_count", sa.Integer(), nullable=False),
        sa.Column("strategy", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(
            ["studio_id"],
            ["studio.id"],
            name="fk_studio_merge_history_studio_id_studio",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_studio_merge_history"),
        sa.UniqueConstraint(
            "studio_id", "position", name="uq_studio_merge_history_studio_id"
        ),
    )


def downgrade() -> None:
    op.drop_table("studio_merge_history")
    op.drop_index("ix_studio_block_key", table_name="studio")
    op.drop_table("studio")
