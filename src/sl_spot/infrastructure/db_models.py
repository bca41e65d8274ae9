"""SQLAlchemy ORM model for the spots table.

Table is created by Alembic migration: alembic/versions/003_create_spots.py
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.sl_common.database import Base


class SpotORM(Base):
    __tablename__ = "spots"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, server_default=text("gen_random_uuid()::text")
    )
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    bookable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
