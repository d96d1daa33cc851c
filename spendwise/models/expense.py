"""Expense model - core table for expense tracking."""

import uuid
import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spendwise.database import Base, utcnow

if TYPE_CHECKING:
    from spendwise.models.embedding import ExpenseEmbedding


class Expense(Base):
    """
    One spending record, stored in the currency it was paid in.
    Totals are always converted at read time, never at write time.
    """

    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Amount & Currency (original)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)  # ISO 4217

    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    embedding: Mapped["ExpenseEmbedding | None"] = relationship(
        "ExpenseEmbedding",
        back_populates="expense",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Expense(id={self.id}, amount={self.amount} {self.currency}, "
            f"description={self.description[:30]})>"
        )
