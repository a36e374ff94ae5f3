"""004: create wagers table

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wagers (
            id                     VARCHAR(64)  PRIMARY KEY,
            account_id             VARCHAR(64)  NOT NULL REFERENCES accounts (id),
            dealer_id              VARCHAR(64)  REFERENCES accounts (id),
            market_id              VARCHAR(64)  NOT NULL REFERENCES markets (id),
            subgame_type           VARCHAR(20)  NOT NULL,
            numbers                TEXT[]       NOT NULL,
            amount_per_number      BIGINT       NOT NULL,
            total_amount           BIGINT       NOT NULL,
            dealer_commission_bps  INTEGER      NOT NULL DEFAULT 0,
            user_commission_bps    INTEGER      NOT NULL DEFAULT 0,
            placed_at              TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wagers_subgame CHECK (
                subgame_type IN ('TWO_DIGIT', 'ONE_DIGIT_OPEN', 'ONE_DIGIT_CLOSE', 'COMBO')
            ),
            CONSTRAINT ck_wagers_amount_gt_0 CHECK (amount_per_number > 0),
            CONSTRAINT ck_wagers_total CHECK (
                total_amount = amount_per_number * cardinality(numbers)
            )
        );
    """)
    op.execute("CREATE INDEX idx_wagers_market ON wagers (market_id);")
    op.execute(
        "CREATE INDEX idx_wagers_account_market ON wagers (account_id, market_id, placed_at);"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wagers CASCADE;")
