"""Mock car catalog: makes, models, specs and market pricing."""
import math
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.schemas.services import CarInfo, FuelEconomy, MarketComparable, MarketData, PriceRange
from app.services.market import RandomMarketEstimator

CAR_MODELS: Dict[str, List[str]] = {
    "Honda": ["Civic", "Accord", "CR-V", "Pilot"],
    "Toyota": ["Camry", "Corolla", "RAV4", "Highlander"],
    "BMW": ["3 Series", "5 Series", "X3", "X5"],
    "Mercedes": ["C-Class", "E-Class", "GLC", "GLE"],
    "Audi": ["A4", "A6", "Q5", "Q7"],
    "Ford": ["F-150", "Explorer", "Escape", "Mustang"],
    "Chevrolet": ["Silverado", "Equinox", "Malibu", "Suburban"],
    "Nissan": ["Altima", "Sentra", "Rogue", "Pathfinder"],
}

COMMON_ISSUES = [
    "Transmission issues after 100k miles",
    "AC compressor failure",
    "Brake pad wear",
]

# (source, listing count range, mileage spread)
MARKET_SOURCES = (
    ("Cars.com", (20, 69), 20000),
    ("AutoTrader", (15, 54), 15000),
    ("CarGurus", (10, 44), 18000),
)

MIN_QUERY_LENGTH = 2


def search(query: Optional[str] = None, make: Optional[str] = None) -> List[dict]:
    """Search makes and models by substring, list one make's models, or list everything."""
    if query:
        q = query.lower()
        results = [
            {"type": "make", "make": m, "models": models}
            for m, models in CAR_MODELS.items()
            if q in m.lower()
        ]
        for m, models in CAR_MODELS.items():
            results.extend(
                {"type": "model", "make": m, "model": model}
                for model in models
                if q in model.lower()
            )
        return results

    if make:
        return [{"make": make, "model": model} for model in CAR_MODELS.get(make, [])]

    return [{"make": m, "models": models} for m, models in CAR_MODELS.items()]


class CarCatalog:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.estimator = RandomMarketEstimator(self.rng)

    def car_info(self, year: int, make: str, model: str) -> CarInfo:
        rng = self.rng
        return CarInfo(
            year=year,
            make=make,
            model=model,
            body_style="Sedan",
            engine="2.0L 4-Cylinder",
            transmission="CVT Automatic",
            fuel_economy=FuelEconomy(city=rng.randint(20, 29), highway=rng.randint(25, 39)),
            common_issues=list(COMMON_ISSUES),
            recalls=rng.randint(0, 2),
            reliability="Good" if rng.random() > 0.3 else "Average",
            depreciation=rng.randint(10, 29),
        )

    def market_data(self, year: int, make: str, model: str, mileage: int) -> MarketData:
        rng = self.rng
        estimated_value = self.estimator.estimate_value(year, mileage)

        comparable = []
        for source, (low, high), mileage_spread in MARKET_SOURCES:
            comparable.append(MarketComparable(
                source=source,
                count=rng.randint(low, high),
                avg_price=round(estimated_value * (0.9 + rng.random() * 0.2)),
                avg_mileage=max(0, mileage + math.floor((rng.random() - 0.5) * mileage_spread)),
            ))

        if rng.random() > 0.5:
            trend = "stable"
        else:
            trend = "increasing" if rng.random() > 0.5 else "decreasing"

        if rng.random() > 0.6:
            demand = "high"
        else:
            demand = "medium" if rng.random() > 0.5 else "low"

        return MarketData(
            estimated_value=estimated_value,
            price_range=PriceRange(low=round(estimated_value * 0.85), high=round(estimated_value * 1.15)),
            dealer_average=round(estimated_value * 1.1),
            private_seller_average=round(estimated_value * 0.95),
            trade_in_value=round(estimated_value * 0.8),
            data_source="CarBuyGuru Market Analysis",
            last_updated=datetime.now(timezone.utc),
            comparable=comparable,
            market_trend=trend,
            demand_level=demand,
        )
