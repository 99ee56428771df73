"""
Parse the price-research reply into per-marketplace estimates and a recommendation.

Expected shape::

    EBAY: $45.00
    STOCKX: N/A
    ...
    RECOMMENDED: eBay
    REASONING: ...
    CONFIDENCE: HIGH

Unsuitable marketplaces ("N/A") are left out of the prices map. A missing
RECOMMENDED falls back to the highest estimate, a missing REASONING is
worked out from the estimates.
"""

import logging
from typing import Dict, Optional

from quickflip.models.listing import Marketplace
from quickflip.models.pricing import PriceResearch
from quickflip.utils.item_parser import _extract_value, parse_price

logger = logging.getLogger(__name__)

MARKETPLACE_LABELS = {
    "EBAY": Marketplace.EBAY,
    "FACEBOOK": Marketplace.FACEBOOK,
    "AMAZON": Marketplace.AMAZON,
    "STOCKX": Marketplace.STOCKX,
    "ETSY": Marketplace.ETSY,
    "MERCARI": Marketplace.MERCARI,
    "POSHMARK": Marketplace.POSHMARK,
    "DEPOP": Marketplace.DEPOP,
}

# Prices further than this above the average are called out in the reasoning.
STANDOUT_PERCENT = 20


def research_price(value: str) -> Optional[float]:
    """Dollar estimate on a marketplace line; None for N/A or no dollar amount."""
    if "N/A" in value.upper() or "$" not in value:
        return None
    price = parse_price(value[value.index("$"):])
    return price if price else None


def match_marketplace(value: str) -> Optional[Marketplace]:
    lowered = value.lower()
    for label, marketplace in MARKETPLACE_LABELS.items():
        if label.lower() in lowered:
            return marketplace
    return None


def parse_confidence(value: str) -> str:
    lowered = value.lower()
    if "high" in lowered:
        return "high"
    if "low" in lowered:
        return "low"
    return "medium"


def explain(recommended: Marketplace, prices: Dict[Marketplace, float]) -> str:
    if recommended not in prices:
        return "No marketplace price estimates were available"
    price = prices[recommended]
    average = sum(prices.values()) / len(prices)
    percent_higher = (price - average) / average * 100
    if percent_higher > STANDOUT_PERCENT:
        return f"{recommended.value} offers {percent_higher:.0f}% higher prices than average"
    if price >= max(prices.values()):
        return f"{recommended.value} has the best price at ${price:.2f}"
    return f"{recommended.value} is estimated at ${price:.2f}"


def parse_price_research(content: str) -> PriceResearch:
    prices: Dict[Marketplace, float] = {}
    recommended = None
    reasoning = ""
    confidence = "medium"

    for line in (content or "").splitlines():
        stripped = line.strip().replace("**", "").strip()
        label, sep, _ = stripped.partition(":")
        if not sep:
            continue
        label = label.strip().upper()
        value = _extract_value(stripped)
        if label in MARKETPLACE_LABELS:
            price = research_price(value)
            if price is not None:
                prices[MARKETPLACE_LABELS[label]] = price
        elif label == "RECOMMENDED":
            recommended = match_marketplace(value)
        elif label == "REASONING":
            reasoning = value
        elif label == "CONFIDENCE":
            confidence = parse_confidence(value)

    if recommended is None:
        if prices:
            recommended = max(prices, key=prices.get)
        else:
            logger.info("Price research reply had no estimates or recommendation")
            recommended = Marketplace.EBAY

    return PriceResearch(
        prices=prices,
        recommended=recommended,
        reasoning=reasoning or explain(recommended, prices),
        confidence=confidence,
    )
