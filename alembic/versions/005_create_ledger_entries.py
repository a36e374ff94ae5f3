"""005: create ledger_entries table

Revision ID: 005
Revises: 004
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      VARCHAR(64)     NOT NULL REFERENCES accounts (id),
            entry_type      VARCHAR(30)     NOT NULL,
            debit           BIGINT          NOT NULL DEFAULT 0,
            credit          BIGINT          NOT NULL DEFAULT 0,
            balance_after   BIGINT          NOT NULL,
            description     VARCHAR(500)    NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'INITIAL_DEPOSIT', 'TOP_UP', 'WITHDRAWAL',
                    'TRANSFER_OUT', 'TRANSFER_IN',
                    'WAGER_STAKE',
                    'PRIZE_PAYOUT', 'DEALER_COMMISSION', 'USER_COMMISSION'
                )
            ),
            CONSTRAINT ck_ledger_one_side CHECK (
                debit >= 0 AND credit >= 0 AND (debit = 0 OR credit = 0)
            ),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_account ON ledger_entries (account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_reference
        ON ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Wallet movements, append-only, amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
