"""Business directory table.

Revision ID: 001_businesses
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op


revision = "001_businesses"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(
        """
        CREATE TABLE IF NOT EXISTS businesses (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            bot_id TEXT NOT NULL,
            phone_number TEXT,
            description TEXT,
            hours JSONB,
            faq JSONB,
            openai_api_key TEXT,
            prompt_template TEXT,
            business_data JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );

        CREATE UNIQUE INDEX IF NOT EXISTS uq_businesses_bot_id
            ON businesses (bot_id);

        CREATE INDEX IF NOT EXISTS idx_businesses_phone_number
            ON businesses (phone_number);
        """
    )


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql("DROP TABLE IF EXISTS businesses;")
