"""002: create accounts table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                     VARCHAR(64)  PRIMARY KEY,
            role                   VARCHAR(10)  NOT NULL,
            parent_id              VARCHAR(64)  REFERENCES accounts (id),
            name                   VARCHAR(200) NOT NULL,
            wallet_balance         BIGINT       NOT NULL DEFAULT 0,
            commission_rate_bps    INTEGER      NOT NULL DEFAULT 0,
            prize_two_digit        INTEGER      NOT NULL,
            prize_one_digit_open   INTEGER      NOT NULL,
            prize_one_digit_close  INTEGER      NOT NULL,
            prize_combo            INTEGER,
            limit_one_digit        BIGINT,
            limit_two_digit        BIGINT,
            limit_per_draw         BIGINT,
            fixed_stake            BIGINT,
            is_restricted          BOOLEAN      NOT NULL DEFAULT FALSE,
            version                BIGINT       NOT NULL DEFAULT 0,
            created_at             TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at             TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_role         CHECK (role IN ('USER', 'DEALER', 'ADMIN')),
            CONSTRAINT ck_accounts_wallet_gte_0 CHECK (wallet_balance >= 0),
            CONSTRAINT ck_accounts_commission   CHECK (commission_rate_bps BETWEEN 0 AND 10000),
            CONSTRAINT ck_accounts_fixed_stake  CHECK (fixed_stake IS NULL OR fixed_stake > 0)
        );
    """)
    op.execute("CREATE INDEX idx_accounts_parent ON accounts (parent_id);")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE accounts IS 'Wallets for every role; amounts in cents, rates in bps';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
