"""003: create markets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                VARCHAR(64)  PRIMARY KEY,
            name              TEXT         NOT NULL,
            draw_time         VARCHAR(5)   NOT NULL,
            variant           VARCHAR(20)  NOT NULL DEFAULT 'STANDARD',
            result_status     VARCHAR(20)  NOT NULL DEFAULT 'PENDING',
            result_value      VARCHAR(2),
            payouts_approved  BOOLEAN      NOT NULL DEFAULT FALSE,
            approved_at       TIMESTAMPTZ,
            created_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_draw_time CHECK (draw_time ~ '^[0-2][0-9]:[0-5][0-9]$'),
            CONSTRAINT ck_markets_variant   CHECK (variant IN ('STANDARD', 'SINGLE_DIGIT')),
            CONSTRAINT ck_markets_result_status CHECK (
                result_status IN ('PENDING', 'PARTIAL_OPEN', 'FINAL')
            ),
            CONSTRAINT ck_markets_result_value CHECK (
                (result_status = 'PENDING' AND result_value IS NULL)
                OR (result_status <> 'PENDING' AND result_value ~ '^[0-9]{1,2}$')
            ),
            CONSTRAINT ck_markets_latch_on_final CHECK (
                payouts_approved = FALSE OR result_status = 'FINAL'
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
