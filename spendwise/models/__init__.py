"""
SQLAlchemy ORM models for Spendwise.
All models must be imported here so ``init_db`` registers them.
"""

from spendwise.models.budget import Budget
from spendwise.models.embedding import ExpenseEmbedding
from spendwise.models.expense import Expense
from spendwise.models.goal import Goal
from spendwise.models.holding import Holding
from spendwise.models.income import Income
from spendwise.models.monthly_stat import MonthlyStat
from spendwise.models.subscription import Subscription
from spendwise.models.user_settings import UserSettings

__all__ = [
    "UserSettings",
    "Expense",
    "ExpenseEmbedding",
    "Income",
    "Budget",
    "Subscription",
    "Holding",
    "Goal",
    "MonthlyStat",
]
