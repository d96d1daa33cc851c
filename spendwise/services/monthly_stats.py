"""
Monthly statistics snapshot.

Records one row per (user, month) with total spending, total income and the
current portfolio value, all converted into the user's currency. Re-recording
the same month updates the existing row.
"""

from datetime import date
from decimal import Decimal

from spendwise.logging_config import get_logger
from spendwise.models import MonthlyStat
from spendwise.storage.financial_store import FinancialStore, RecordFilter
from spendwise.tools.currency import DEFAULT_RATE_TABLE, RateTable, round_money
from spendwise.tools.periods import month_bounds

logger = get_logger(__name__)


async def record_monthly_stats(
    store: FinancialStore,
    user_id: str,
    month: date,
    currency: str,
    rates: RateTable = DEFAULT_RATE_TABLE,
) -> MonthlyStat:
    """
    Compute and upsert the snapshot for the month containing ``month``.

    Args:
        store: Financial record store
        user_id: Owner of the records
        month: Any day of the month to record
        currency: Currency the totals are expressed in
        rates: Conversion table

    Returns:
        The stored MonthlyStat
    """
    start, end = month_bounds(month)
    period = RecordFilter(start_date=start, end_date=end, limit=None)

    expenses = await store.list_expenses(user_id, period)
    income = await store.list_income(user_id, period)
    holdings = await store.list_holdings(user_id)

    spending = sum(
        (rates.convert(e.amount, e.currency, currency) for e in expenses), Decimal("0")
    )
    earned = sum((rates.convert(i.amount, i.currency, currency) for i in income), Decimal("0"))
    portfolio = sum(
        (
            rates.convert(Decimal(h.shares) * Decimal(h.effective_price), h.currency, currency)
            for h in holdings
        ),
        Decimal("0"),
    )

    logger.info(
        "monthly_stats_computed",
        user_id=user_id,
        month=start.isoformat(),
        expenses=len(expenses),
        income=len(income),
        holdings=len(holdings),
    )
    return await store.upsert_monthly_stat(
        user_id,
        start,
        currency,
        total_spending=round_money(spending),
        total_income=round_money(earned),
        total_portfolio_value=round_money(portfolio),
    )
