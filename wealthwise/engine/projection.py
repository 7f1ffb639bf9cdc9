"""Return and compounding calculations.

Pure math, no I/O. Rates are annual percentages (8.0 means 8%).
"""

from collections.abc import Iterable, Sequence

from wealthwise.engine.ledger import asset_items, net_worth
from wealthwise.models.assets import AssetItem, UserAssets, WealthProjection


def weighted_average_return(items: Iterable[AssetItem]) -> float:
    """Value-weighted annual return of a set of holdings.

    Items without an interest rate count as 0%. Returns 0 when the
    holdings sum to zero.

    Args:
        items: Asset items; callers pass asset categories only
            (see portfolio_return).

    Returns:
        Annual return in percent.
    """
    weighted_sum = 0.0
    total_amount = 0.0
    for item in items:
        rate = item.interest_rate or 0.0
        weighted_sum += item.amount * rate
        total_amount += item.amount

    if total_amount == 0:
        return 0.0
    return weighted_sum / total_amount


def portfolio_return(ledger: UserAssets) -> float:
    """Weighted average return of every asset in the ledger."""
    return weighted_average_return(asset_items(ledger))


def compound_forward(
    principal: float,
    monthly_contribution: float,
    annual_rate_percent: float,
    months: float,
) -> float:
    """Future value of a lump sum plus a monthly contribution.

    Compounds monthly at annual_rate_percent / 12. Contributions are made
    at the end of each month (ordinary annuity).

    Args:
        principal: Amount invested today
        monthly_contribution: Amount added every month
        annual_rate_percent: Annual rate, e.g. 12 for 12%
        months: Number of monthly periods

    Returns:
        Value after `months` periods
    """
    monthly_rate = annual_rate_percent / 100 / 12

    if monthly_rate == 0:
        return principal + monthly_contribution * months

    growth = (1 + monthly_rate) ** months
    return principal * growth + monthly_contribution * ((growth - 1) / monthly_rate)


def project_net_worth(current: float, annual_rate_percent: float, years: float) -> float:
    """Compound a net worth annually, without further contributions."""
    return current * (1 + annual_rate_percent / 100) ** years


def wealth_projection(
    ledger: UserAssets,
    horizons: Sequence[int] = (5, 10),
) -> WealthProjection:
    """Project today's net worth at the portfolio's weighted return.

    This is the dashboard's "where does my wealth go if nothing changes"
    view; it ignores savings and treats liabilities as fixed.
    """
    rate = portfolio_return(ledger)
    current = net_worth(ledger)
    return WealthProjection(
        annual_rate=rate,
        current_net_worth=current,
        horizons={
            years: project_net_worth(current, rate, years)
            for years in horizons
        },
    )
