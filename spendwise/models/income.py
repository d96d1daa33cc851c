"""Income model."""

import uuid
import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from spendwise.database import Base, utcnow


class Income(Base):
    """One income record; ``source`` is one of the fixed income sources."""

    __tablename__ = "income"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="Other")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<Income(id={self.id}, amount={self.amount} {self.currency}, source={self.source})>"
