"""002: create point_balances and point_entries tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE point_balances (
            user_id     VARCHAR(64) PRIMARY KEY,
            points      BIGINT      NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_point_balances_points_gte_0 CHECK (points >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_point_balances_updated_at
            BEFORE UPDATE ON point_balances
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE point_balances IS 'Park Points balance, one row per user';")

    op.execute("""
        CREATE TABLE point_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            booking_id      BIGINT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_point_entry_type CHECK (
                entry_type IN (
                    'GRANT',
                    'BOOKING_DEBIT', 'BOOKING_CREDIT',
                    'REFUND_CREDIT', 'REFUND_DEBIT'
                )
            ),
            CONSTRAINT ck_point_entry_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_point_entries_user ON point_entries (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_point_entries_booking
        ON point_entries (booking_id)
        WHERE booking_id IS NOT NULL;
    """)
    op.execute(
        "COMMENT ON TABLE point_entries IS "
        "'Park Points journal: append-only, kept after the balance row is purged';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS point_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS point_balances CASCADE;")
