"""Offer recommendations derived from inspection and market data."""
import random
from typing import List, Optional

from app.schemas.evaluation import RepairCost, Recommendations

OFFER_DISCOUNT = 0.10
WALK_AWAY_MARKUP = 0.05

NEGOTIATION_POINTS = [
    "Point out any mechanical issues discovered",
    "Reference market pricing data",
    "Highlight repair costs needed",
    "Be prepared to walk away if price is too high",
    "Consider the total cost of ownership",
]


class RecommendationEngine:
    """Builds offer guidance. Repair cost estimates are mocked with ``rng``."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def estimate_repairs(self, inspection: dict) -> List[RepairCost]:
        mechanical = (inspection or {}).get("mechanical") or {}
        if not mechanical.get("completed"):
            return []

        repairs = []
        for result in mechanical.get("results") or []:
            if result.get("status") != "fail":
                continue
            repairs.append(RepairCost(
                issue=result.get("item") or "Unspecified issue",
                estimated_cost=self.rng.randint(200, 2199),
                priority="high" if self.rng.random() > 0.6 else "medium",
            ))
        return repairs

    def generate(self, evaluation) -> Recommendations:
        repairs = self.estimate_repairs(evaluation.inspection)
        total_repairs = sum(r.estimated_cost for r in repairs)
        estimated_value = evaluation.estimated_value or evaluation.price

        return Recommendations(
            suggested_offer=round(estimated_value - total_repairs - estimated_value * OFFER_DISCOUNT),
            max_offer=round(estimated_value - total_repairs),
            walk_away_price=round(estimated_value + estimated_value * WALK_AWAY_MARKUP),
            repair_costs=repairs,
            negotiation_points=list(NEGOTIATION_POINTS),
        )
