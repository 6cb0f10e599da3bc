from app.models.user import User
from app.models.evaluation import CarEvaluation

__all__ = ["User", "CarEvaluation"]
