"""Stored embedding vector for an expense description."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spendwise.database import Base, utcnow

if TYPE_CHECKING:
    from spendwise.models.expense import Expense


class ExpenseEmbedding(Base):
    """
    Embedding of one expense's description.
    PostgreSQL stores the vector in a pgvector column and ranks it in SQL;
    other backends keep a JSON float list.
    """

    __tablename__ = "expense_embeddings"

    expense_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vector: Mapped[list[float]] = mapped_column(
        JSON().with_variant(Vector(), "postgresql"), nullable=False
    )
    model: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    expense: Mapped["Expense"] = relationship("Expense", back_populates="embedding")

    def __repr__(self) -> str:
        return f"<ExpenseEmbedding(expense_id={self.expense_id}, dims={len(self.vector)})>"
