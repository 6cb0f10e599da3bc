"""Ownership checks between a request principal and an evaluation."""
from app.core.errors import Forbidden, NotFound
from app.core.security import GuestPrincipal, Principal, UserPrincipal


def is_owner(principal: Principal, evaluation) -> bool:
    if isinstance(principal, UserPrincipal):
        return evaluation.user_id is not None and evaluation.user_id == principal.user_id
    if isinstance(principal, GuestPrincipal):
        return principal.session_id is not None and evaluation.session_id == principal.session_id
    return False


def ensure_owner(principal: Principal, evaluation, reveal_forbidden: bool = False) -> None:
    """Raise unless ``principal`` owns ``evaluation``.

    Guests are always told the record does not exist. Authenticated users get
    ``Forbidden`` instead when ``reveal_forbidden`` is set (workflow endpoints).
    """
    if evaluation is None:
        raise NotFound("Evaluation not found")
    if is_owner(principal, evaluation):
        return
    if reveal_forbidden and isinstance(principal, UserPrincipal):
        raise Forbidden("Not authorized to access this evaluation")
    raise NotFound("Evaluation not found")
