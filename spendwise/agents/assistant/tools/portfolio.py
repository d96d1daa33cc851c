"""
Portfolio tools.

Holding values use the current price when one is stored and the average
purchase price otherwise. Values are converted from each holding's currency
into the target currency before any totals are taken.
"""

from collections import defaultdict
from decimal import Decimal

from spendwise.agents.assistant.tools.common import ZERO, converted, money, percent
from spendwise.agents.assistant.tools.params import GetHoldingsParams, GetPortfolioParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec
from spendwise.models import Holding


def _value_and_cost(ctx: ToolContext, holding: Holding, target: str) -> tuple[Decimal, Decimal]:
    shares = Decimal(holding.shares)
    value = converted(ctx, shares * Decimal(holding.effective_price), holding.currency, target)
    cost = converted(ctx, shares * Decimal(holding.average_price), holding.currency, target)
    return value, cost


async def get_portfolio(params: GetPortfolioParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    holdings = await ctx.store.list_holdings(ctx.user_id)

    if not holdings:
        return ToolOutput(
            payload={
                "message": "No investment holdings found",
                "total_value": 0.0,
                "total_cost": 0.0,
                "total_gain_loss": 0.0,
                "percentage_change": 0.0,
                "holdings_count": 0,
                "by_asset_class": [],
                "currency": target,
                "display_currency": target,
            }
        )

    total_value = ZERO
    total_cost = ZERO
    by_class: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for holding in holdings:
        value, cost = _value_and_cost(ctx, holding, target)
        total_value += value
        total_cost += cost
        by_class[holding.asset_class or "stock"] += value

    gain_loss = total_value - total_cost
    return ToolOutput(
        payload={
            "total_value": money(total_value),
            "total_cost": money(total_cost),
            "total_gain_loss": money(gain_loss),
            "percentage_change": percent(gain_loss, total_cost),
            "holdings_count": len(holdings),
            "by_asset_class": [
                {
                    "asset_class": name,
                    "value": money(value),
                    "percentage": percent(value, total_value),
                }
                for name, value in sorted(by_class.items(), key=lambda item: item[1], reverse=True)
            ],
            "currency": target,
            "display_currency": target,
        }
    )


async def get_holdings(params: GetHoldingsParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    holdings = await ctx.store.list_holdings(
        ctx.user_id, symbol=params.symbol, asset_class=params.asset_class
    )

    rows = []
    for holding in holdings:
        value, cost = _value_and_cost(ctx, holding, target)
        rows.append(
            {
                "symbol": holding.symbol,
                "asset_class": holding.asset_class or "stock",
                "shares": float(holding.shares),
                "average_price": float(holding.average_price),
                "current_price": float(holding.effective_price),
                "native_currency": holding.currency,
                "total_value": money(value),
                "total_cost": money(cost),
                "gain_loss": money(value - cost),
                "gain_loss_percent": percent(value - cost, cost),
                "display_currency": target,
                "last_updated": holding.last_updated.isoformat() if holding.last_updated else None,
            }
        )

    return ToolOutput(
        payload={
            "holdings": rows,
            "count": len(rows),
            "currency": target,
            "display_currency": target,
        }
    )


TOOLS = (
    ToolSpec(
        name="get_portfolio",
        description=(
            "Get the investment portfolio summary: total value, cost, gain/loss, performance "
            "and allocation by asset class. Can return data in a specific currency."
        ),
        params_model=GetPortfolioParams,
        handler=get_portfolio,
    ),
    ToolSpec(
        name="get_holdings",
        description=(
            "Get individual investment holdings (stocks, crypto, ETFs, ...) with value and "
            "gain/loss. Can return data in a specific currency."
        ),
        params_model=GetHoldingsParams,
        handler=get_holdings,
    ),
)
