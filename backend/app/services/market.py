"""Market value estimation.

``RandomMarketEstimator`` is a stand-in for a real market data feed: the base
value is drawn at random and adjusted for mileage and age. Swap in another
``MarketEstimator`` to integrate a provider.
"""
import logging
import math
import random
from datetime import datetime
from typing import Optional, Protocol

from app.schemas.evaluation import ComparableListing, MarketAnalysis

logger = logging.getLogger(__name__)

MIN_ESTIMATED_VALUE = 1000

# (source, location, price spread, mileage spread)
COMPARABLE_SOURCES = (
    ("Cars.com", "Local Area", 4000, 20000),
    ("AutoTrader", "Regional", 3000, 15000),
    ("CarGurus", "National", 3500, 18000),
)

# Upper bounds of price-vs-market percentage bands and their deal scores
DEAL_SCORE_BANDS = (
    (-20, 90),
    (-10, 75),
    (0, 65),
    (10, 45),
    (20, 30),
)
WORST_DEAL_SCORE = 15


class MarketEstimator(Protocol):
    def estimate(self, year: int, make: str, model: str, mileage: int, price: float) -> MarketAnalysis:
        ...


def deal_score(price_vs_market: float) -> int:
    """Map how far the asking price sits from market value to a 0-100 score."""
    for upper, score in DEAL_SCORE_BANDS:
        if price_vs_market < upper:
            return score
    return WORST_DEAL_SCORE


def price_vs_market(price: float, estimated_value: float) -> float:
    return (price - estimated_value) / estimated_value * 100


class RandomMarketEstimator:
    def __init__(self, rng: Optional[random.Random] = None, reference_year: Optional[int] = None):
        self.rng = rng or random.Random()
        self.reference_year = reference_year

    def estimate_value(self, year: int, mileage: int) -> int:
        reference_year = self.reference_year or datetime.now().year
        base_value = self.rng.randint(15000, 34999)
        mileage_adjustment = max(0, (150000 - mileage) / 15000) * 1000
        age_adjustment = max(0, reference_year - year) * -800
        return max(MIN_ESTIMATED_VALUE, round(base_value + mileage_adjustment + age_adjustment))

    def _comparables(self, estimated_value: int, mileage: int):
        listings = []
        for source, location, price_spread, mileage_spread in COMPARABLE_SOURCES:
            listings.append(ComparableListing(
                source=source,
                price=estimated_value + math.floor((self.rng.random() - 0.5) * price_spread),
                mileage=max(0, mileage + math.floor((self.rng.random() - 0.5) * mileage_spread)),
                location=location,
            ))
        return listings

    def estimate(self, year: int, make: str, model: str, mileage: int, price: float) -> MarketAnalysis:
        estimated_value = self.estimate_value(year, mileage)
        delta = price_vs_market(price, estimated_value)
        analysis = MarketAnalysis(
            estimated_value=estimated_value,
            price_vs_market=round(delta),
            deal_score=deal_score(delta),
            comparable=self._comparables(estimated_value, mileage),
        )
        logger.info(
            f"Market estimate for {year} {make} {model}: value={estimated_value} "
            f"vs_market={analysis.price_vs_market}% score={analysis.deal_score}"
        )
        return analysis
