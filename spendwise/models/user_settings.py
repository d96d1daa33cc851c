"""Per-user preferences; only the display currency matters here."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from spendwise.database import Base, utcnow


class UserSettings(Base):
    """Default currency of one user; missing rows fall back to configuration."""

    __tablename__ = "user_settings"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<UserSettings(user_id={self.user_id}, currency={self.currency})>"
