"""004: create bookings table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # No FK on spot_id: bookings outlive the spots they reference
    op.execute("""
        CREATE TABLE bookings (
            id                  BIGSERIAL    PRIMARY KEY,
            user_id             VARCHAR(64)  NOT NULL,
            spot_id             VARCHAR(64)  NOT NULL,
            status              VARCHAR(20)  NOT NULL DEFAULT 'active',
            snapshot_price      BIGINT       NOT NULL,
            snapshot_owner_id   VARCHAR(64)  NOT NULL,
            snapshot_address    VARCHAR(500) NOT NULL,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            canceled_at         TIMESTAMPTZ,
            CONSTRAINT ck_bookings_status CHECK (
                status IN ('active', 'canceled', 'completed')
            ),
            CONSTRAINT ck_bookings_snapshot_price_gt_0 CHECK (snapshot_price > 0),
            CONSTRAINT ck_bookings_canceled_at CHECK (
                (status = 'canceled') = (canceled_at IS NOT NULL)
            )
        );
    """)
    # At most one active booking per spot, enforced by the store as a backstop
    op.execute("""
        CREATE UNIQUE INDEX uq_bookings_one_active_per_spot
        ON bookings (spot_id)
        WHERE status = 'active';
    """)
    op.execute("CREATE INDEX idx_bookings_user ON bookings (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_bookings_owner_active
        ON bookings (snapshot_owner_id)
        WHERE status = 'active';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bookings CASCADE;")
