# backend/kabufolio/services/rebalance.py
"""
Rebalance advisor.

Suggests which country the next purchase should go to. Advice only ever
points at buying more of the underweighted side; it never suggests a sale.

Two modes:
- suggest_rebalance: compares percentage shares and stays silent while the
  gap is below the threshold (10 points by default)
- suggest_rebalance_by_yen_gap: compares yen totals and always names a target
"""

import logging
from decimal import Decimal

from kabufolio.models import Country
from kabufolio.services.constants import NEUTRAL_SHARE, REBALANCE_THRESHOLD
from kabufolio.services.valuation.types import (
    CountryAggregate,
    RebalanceSuggestion,
    YenGapSuggestion,
)

logger = logging.getLogger(__name__)


def suggest_rebalance(
        aggregate: CountryAggregate,
        threshold: Decimal = REBALANCE_THRESHOLD,
) -> RebalanceSuggestion:
    """
    Percentage-threshold rebalance advice.

    Args:
        aggregate: Country sums to compare
        threshold: Minimum |jp_percent - us_percent| that triggers a target

    Returns:
        RebalanceSuggestion. With nothing invested the split is reported as
        50/50 with no target.
    """
    total = aggregate.japan_total + aggregate.us_total
    if total == 0:
        return RebalanceSuggestion(
            difference=Decimal("0"),
            target_country=None,
            jp_percent=NEUTRAL_SHARE,
            us_percent=NEUTRAL_SHARE,
        )

    jp_percent = aggregate.japan_total / total
    us_percent = aggregate.us_total / total
    difference = abs(jp_percent - us_percent)

    target_country = None
    if difference >= threshold:
        target_country = Country.JAPAN if jp_percent < us_percent else Country.US
        logger.debug(f"Allocation gap {difference:.4f} >= {threshold}: suggest {target_country.value}")

    return RebalanceSuggestion(
        difference=difference,
        target_country=target_country,
        jp_percent=jp_percent,
        us_percent=us_percent,
    )


def suggest_rebalance_by_yen_gap(aggregate: CountryAggregate) -> YenGapSuggestion:
    """
    Absolute yen-gap rebalance advice.

    The target is Japan when its total is strictly smaller, otherwise the US
    (including a tie, and the empty portfolio).
    """
    difference = abs(aggregate.japan_total - aggregate.us_total)
    target_country = Country.JAPAN if aggregate.japan_total < aggregate.us_total else Country.US
    return YenGapSuggestion(difference=difference, target_country=target_country)
