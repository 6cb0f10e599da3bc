"""Status side effects of evaluation operations.

Each operation unconditionally sets its target status; there is no transition
validation, so e.g. re-running analysis on a completed evaluation moves it back
to ``analyzing``. ``awaiting_carfax`` and ``archived`` are only reached through
an explicit status patch.
"""
from enum import Enum

from app.schemas.evaluation import EvaluationStatus


class Operation(str, Enum):
    CREATE = "create"
    ANALYZE = "analyze"
    INSPECT = "inspect"
    RECOMMEND = "recommend"


OPERATION_STATUS = {
    Operation.CREATE: EvaluationStatus.DRAFT,
    Operation.ANALYZE: EvaluationStatus.ANALYZING,
    Operation.INSPECT: EvaluationStatus.IN_PROGRESS,
    Operation.RECOMMEND: EvaluationStatus.COMPLETED,
}


def status_after(operation: Operation) -> EvaluationStatus:
    return OPERATION_STATUS[operation]


def apply_transition(evaluation, operation: Operation) -> EvaluationStatus:
    status = status_after(operation)
    evaluation.status = status.value
    return status
