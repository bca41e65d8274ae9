"""003: create spots table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE spots (
            id          VARCHAR(64)      PRIMARY KEY DEFAULT gen_random_uuid()::text,
            owner_id    VARCHAR(64)      NOT NULL,
            address     VARCHAR(500)     NOT NULL,
            description TEXT             NOT NULL DEFAULT 'No description provided',
            latitude    DOUBLE PRECISION NOT NULL,
            longitude   DOUBLE PRECISION NOT NULL,
            price       BIGINT           NOT NULL,
            bookable    BOOLEAN          NOT NULL DEFAULT TRUE,
            created_at  TIMESTAMPTZ      NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ      NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_spots_price_gt_0 CHECK (price > 0),
            CONSTRAINT ck_spots_latitude   CHECK (latitude BETWEEN -90 AND 90),
            CONSTRAINT ck_spots_longitude  CHECK (longitude BETWEEN -180 AND 180)
        );
    """)
    op.execute("CREATE INDEX idx_spots_owner ON spots (owner_id);")
    op.execute("""
        CREATE INDEX idx_spots_available_geo
        ON spots (latitude, longitude)
        WHERE bookable = TRUE;
    """)
    op.execute("""
        CREATE TRIGGER trg_spots_updated_at
            BEFORE UPDATE ON spots
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS spots CASCADE;")
