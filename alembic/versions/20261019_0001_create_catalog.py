# mypy: ignore-errors
"""
Migration Alembic créant les tables du catalogue.

Crée `resources` (ressources publiées ou soumises), `event_candidates` (pipeline d'évaluation des
événements) et `resource_clicks` (suivi des clics sortants).
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les trois tables et leurs index."""
    op.create_table(
        "resources",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("source_org", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("min_minutes", sa.Integer(), nullable=False),
        sa.Column("ev_general", sa.Float(), nullable=False),
        sa.Column("ev_positioned", sa.Float(), nullable=True),
        sa.Column("friction", sa.Float(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("event_date", sa.String(length=32), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=True),
        sa.Column("deadline_date", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submitted_by", sa.Text(), nullable=True),
        sa.Column("background_tags", sa.JSON(), nullable=False),
        sa.Column("position_tags", sa.JSON(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=True),
        sa.Column("source_id", sa.String(length=255), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("url_status", sa.String(length=32), nullable=True),
        sa.Column("activity_score", sa.Float(), nullable=True),
        sa.Column("verification_notes", sa.Text(), nullable=True),
    )
    op.create_index("idx_resources_category", "resources", ["category"])
    op.create_index("idx_resources_status_created", "resources", ["status", "created_at"])

    op.create_table(
        "event_candidates",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("source_id", sa.String(length=255), nullable=True),
        sa.Column("source_org", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("event_date", sa.String(length=32), nullable=True),
        sa.Column("submitted_by", sa.Text(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_suggested_ev", sa.Float(), nullable=True),
        sa.Column("ai_suggested_friction", sa.Float(), nullable=True),
        sa.Column("ai_event_type", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("promoted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("promoted_resource_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "resource_clicks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "resource_id", sa.String(length=255), sa.ForeignKey("resources.id"), nullable=False
        ),
        sa.Column("variant", sa.String(length=4), nullable=False),
        sa.Column("user_time", sa.String(length=16), nullable=True),
        sa.Column("user_intents", sa.JSON(), nullable=False),
        sa.Column("geo_country", sa.Text(), nullable=True),
        sa.Column("clicked_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_resource_clicks_resource_id", "resource_clicks", ["resource_id"])
    op.create_index("ix_resource_clicks_variant", "resource_clicks", ["variant"])
    op.create_index("ix_resource_clicks_clicked_at", "resource_clicks", ["clicked_at"])


def downgrade() -> None:
    """Supprime les tables (clics d'abord, à cause de la clé étrangère)."""
    op.drop_table("resource_clicks")
    op.drop_table("event_candidates")
    op.drop_index("idx_resources_status_created", table_name="resources")
    op.drop_index("idx_resources_category", table_name="resources")
    op.drop_table("resources")
