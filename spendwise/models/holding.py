"""Holding model - investment positions."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from spendwise.database import Base, utcnow


class Holding(Base):
    """One position; prices are in the holding's own currency."""

    __tablename__ = "holdings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    asset_class: Mapped[str] = mapped_column(String(30), nullable=False, default="stock")
    shares: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=8), nullable=False)
    average_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=8), nullable=False
    )
    current_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=8), nullable=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    @property
    def effective_price(self) -> Decimal:
        """Current price, or the average price when no quote is stored."""
        return self.current_price if self.current_price is not None else self.average_price

    def __repr__(self) -> str:
        return f"<Holding(symbol={self.symbol}, shares={self.shares})>"
