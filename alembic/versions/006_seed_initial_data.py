"""006: seed initial data

Revision ID: 006
Revises: 005
Create Date: 2026-10-12
"""

from typing import Sequence, Union

from alembic import op

from config.settings import settings
from src.pm_clock.domain.cycle_clock import validate_draw_time

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (id, name, draw_time, variant)
SEED_MARKETS = (
    ("MKT-EVENING", "Evening", "19:30", "STANDARD"),
    ("MKT-NIGHT", "Night", "23:45", "STANDARD"),
    ("MKT-LATE", "Late Single", "02:15", "SINGLE_DIGIT"),
)


def upgrade() -> None:
    for _, _, draw_time, _ in SEED_MARKETS:
        validate_draw_time(draw_time, settings.CYCLE_START_HOUR)

    # Admin -> dealer -> user chain, each funded with an opening deposit
    op.execute("""
        INSERT INTO accounts (
            id, role, parent_id, name, wallet_balance, commission_rate_bps,
            prize_two_digit, prize_one_digit_open, prize_one_digit_close,
            limit_one_digit, limit_two_digit, limit_per_draw
        ) VALUES
            ('ADM-001', 'ADMIN',  NULL,      'House',        100000000, 0,   90, 9, 9, NULL,  NULL,   NULL),
            ('DLR-001', 'DEALER', 'ADM-001', 'North Dealer',   5000000, 1000, 85, 9, 9, NULL,  NULL,   NULL),
            ('USR-001', 'USER',   'DLR-001', 'Demo Player',     500000, 500, 80, 8, 8, 50000, 100000, 500000);
    """)
    op.execute("""
        INSERT INTO ledger_entries (account_id, entry_type, debit, credit, balance_after, description)
        SELECT id, 'INITIAL_DEPOSIT', 0, wallet_balance, wallet_balance, 'Initial Deposit'
        FROM accounts WHERE id IN ('ADM-001', 'DLR-001', 'USR-001');
    """)

    values = ",\n".join(
        f"('{market_id}', '{name}', '{draw_time}', '{variant}')"
        for market_id, name, draw_time, variant in SEED_MARKETS
    )
    op.execute(f"INSERT INTO markets (id, name, draw_time, variant) VALUES {values};")


def downgrade() -> None:
    ids = ", ".join(f"'{market[0]}'" for market in SEED_MARKETS)
    op.execute(f"DELETE FROM markets WHERE id IN ({ids});")
    op.execute("ALTER TABLE ledger_entries DISABLE TRIGGER trg_ledger_append_only;")
    op.execute("DELETE FROM ledger_entries WHERE account_id IN ('USR-001', 'DLR-001', 'ADM-001');")
    op.execute("ALTER TABLE ledger_entries ENABLE TRIGGER trg_ledger_append_only;")
    op.execute("DELETE FROM accounts WHERE id IN ('USR-001', 'DLR-001', 'ADM-001');")
