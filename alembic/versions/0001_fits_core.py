"""fits core

Revision ID: 0001_fits_core
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_fits_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.create_table(
        "outfits",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("top_url", sa.Text(), nullable=True),
        sa.Column("top_layer_url", sa.Text(), nullable=True),
        sa.Column("bottom_url", sa.Text(), nullable=True),
        sa.Column("shoes_url", sa.Text(), nullable=True),
        sa.Column("accessories_url", sa.Text(), nullable=True),
        sa.Column("ai_description", sa.Text(), nullable=True),
        sa.Column("ai_image_url", sa.Text(), nullable=True),
        sa.Column("season", sa.String(length=16), nullable=True),
        sa.Column("formality", sa.String(length=32), nullable=True),
        sa.Column("aesthetic", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("colors", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("accessories_description", sa.Text(), nullable=True),
        sa.Column("accessories_tags", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("saved", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_outfits_session_id", "outfits", ["session_id"])
    op.create_index("ix_outfits_session_created", "outfits", ["session_id", "created_at"])

    op.create_table(
        "demo_sessions",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("preferences", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("demo_sessions")
    op.drop_index("ix_outfits_session_created", table_name="outfits")
    op.drop_index("ix_outfits_session_id", table_name="outfits")
    op.drop_table("outfits")
