"""Completion score for an evaluation.

The score is a weighted sum of independent section checks and is always derived
from the record, never taken from client input. Weights add up to 100.
"""

BASIC_DETAILS_WEIGHT = 20
PHOTOS_WEIGHT = 10
MARKET_ANALYSIS_WEIGHT = 25
INSPECTION_SECTION_WEIGHT = 10
RECOMMENDATIONS_WEIGHT = 15

INSPECTION_SECTIONS = ("general", "mechanical", "paperwork")


def _present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _section_completed(inspection: dict, name: str) -> bool:
    return bool(((inspection or {}).get(name) or {}).get("completed"))


def calculate_progress(evaluation) -> int:
    """Return the 0-100 completion score for ``evaluation``.

    Works on anything exposing the evaluation attributes (ORM rows, test
    doubles). A mileage or price of 0 still counts as filled in.
    """
    progress = 0

    basics = (evaluation.year, evaluation.make, evaluation.model, evaluation.mileage, evaluation.price)
    if all(_present(value) for value in basics):
        progress += BASIC_DETAILS_WEIGHT

    if evaluation.photos:
        progress += PHOTOS_WEIGHT

    if _present((evaluation.market_analysis or {}).get("deal_score")):
        progress += MARKET_ANALYSIS_WEIGHT

    for section in INSPECTION_SECTIONS:
        if _section_completed(evaluation.inspection, section):
            progress += INSPECTION_SECTION_WEIGHT

    if _present((evaluation.recommendations or {}).get("suggested_offer")):
        progress += RECOMMENDATIONS_WEIGHT

    return progress
