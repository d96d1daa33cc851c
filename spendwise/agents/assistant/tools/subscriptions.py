"""Subscription tool."""

from datetime import timedelta
from decimal import Decimal

from spendwise.agents.assistant.tools.common import ZERO, converted, money
from spendwise.agents.assistant.tools.params import GetSubscriptionsParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec

# Multipliers from a billing cycle to its monthly equivalent
MONTHLY_FACTORS = {
    "weekly": Decimal("52") / Decimal("12"),
    "monthly": Decimal("1"),
    "quarterly": Decimal("1") / Decimal("3"),
    "yearly": Decimal("1") / Decimal("12"),
}


async def get_subscriptions(params: GetSubscriptionsParams, ctx: ToolContext) -> ToolOutput:
    """
    Subscriptions with their converted cost.

    ``total_monthly`` is the monthly equivalent of every listed subscription;
    unknown billing cycles count as monthly.
    """
    target = ctx.target_currency(params.display_currency)

    billing_from = billing_to = None
    if params.upcoming_days is not None:
        billing_from = ctx.today
        billing_to = ctx.today + timedelta(days=params.upcoming_days)

    subscriptions = await ctx.store.list_subscriptions(
        ctx.user_id,
        is_active=params.is_active,
        billing_from=billing_from,
        billing_to=billing_to,
    )

    rows = []
    total_monthly = ZERO
    for sub in subscriptions:
        amount = converted(ctx, sub.amount, sub.currency, target)
        monthly = amount * MONTHLY_FACTORS.get(sub.billing_cycle, Decimal("1"))
        total_monthly += monthly
        rows.append(
            {
                "id": str(sub.id),
                "name": sub.name,
                "amount": money(sub.amount),
                "currency": sub.currency,
                "converted_amount": money(amount),
                "monthly_equivalent": money(monthly),
                "display_currency": target,
                "billing_cycle": sub.billing_cycle,
                "next_billing_date": (
                    sub.next_billing_date.isoformat() if sub.next_billing_date else None
                ),
                "is_active": sub.is_active,
            }
        )

    return ToolOutput(
        payload={
            "subscriptions": rows,
            "count": len(rows),
            "total_monthly": money(total_monthly),
            "currency": target,
            "display_currency": target,
        }
    )


TOOLS = (
    ToolSpec(
        name="get_subscriptions",
        description=(
            "Get subscriptions and recurring expenses, optionally only those due in the "
            "next N days. Can return data in a specific currency."
        ),
        params_model=GetSubscriptionsParams,
        handler=get_subscriptions,
    ),
)
