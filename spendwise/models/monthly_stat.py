"""Monthly snapshot of a user's totals, upserted per (user, month)."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from spendwise.database import Base, utcnow


class MonthlyStat(Base):
    """Totals for one calendar month, in the user's currency at recording time."""

    __tablename__ = "monthly_stats"
    __table_args__ = (UniqueConstraint("user_id", "month", name="uq_monthly_stat_user_month"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    month: Mapped[date] = mapped_column(Date, nullable=False)  # first day of month

    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    total_spending: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), default=0)
    total_income: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), default=0)
    total_portfolio_value: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), default=0
    )

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<MonthlyStat(user_id={self.user_id}, month={self.month})>"
