"""SQLAlchemy ORM model for the bookings table.

Table is created by Alembic migration: alembic/versions/004_create_bookings.py
spot_id deliberately has no foreign key: history outlives deleted spots.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.sl_common.database import Base


class BookingORM(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    spot_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    # Snapshot of the spot's terms at booking time (immutable)
    snapshot_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    snapshot_owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    snapshot_address: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
