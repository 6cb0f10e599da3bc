import random
from datetime import datetime, timezone

import pytest

from app.core.database import utcnow
from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.security import GuestPrincipal, UserPrincipal
from app.schemas.evaluation import EvaluationCreate, EvaluationUpdate, InspectionType
from app.services.evaluation_store import EvaluationStore
from app.services.recommendations import RecommendationEngine
from conftest import StubMarketEstimator, car_payload


@pytest.fixture
def store(db_session):
    return EvaluationStore(db_session)


@pytest.fixture
def owner(make_user):
    return UserPrincipal(make_user().id)


def create(store, principal, **overrides):
    return store.create(principal, EvaluationCreate(**car_payload(**overrides)))


def test_create_for_user(store, owner):
    evaluation = create(store, owner)

    assert evaluation.user_id == owner.user_id
    assert evaluation.session_id is None
    assert evaluation.status == "draft"
    assert evaluation.progress == 20
    assert evaluation.carfax["vin"] == evaluation.vin
    assert evaluation.carfax["requested"] is False


def test_create_for_guest_mints_session(store):
    evaluation = create(store, GuestPrincipal(None))
    assert evaluation.user_id is None
    assert len(evaluation.session_id) == 32


def test_create_for_guest_keeps_existing_session(store):
    evaluation = create(store, GuestPrincipal("abc123"))
    assert evaluation.session_id == "abc123"


def test_list_is_scoped_to_principal(store, owner, make_user):
    other = UserPrincipal(make_user(email="other@example.com").id)
    create(store, owner)
    create(store, owner, model="Accord")
    create(store, other)
    create(store, GuestPrincipal("s1"))

    items, total = store.list(owner)
    assert total == 2
    assert {e.model for e in items} == {"Civic", "Accord"}

    items, total = store.list(GuestPrincipal("s1"))
    assert total == 1

    assert store.list(GuestPrincipal(None)) == ([], 0)


def test_list_paginates(store, owner):
    for _ in range(5):
        create(store, owner)
    items, total = store.list(owner, page=3, limit=2)
    assert total == 5
    assert len(items) == 1


def test_update_merges_and_revalidates(store, owner):
    evaluation = create(store, owner)
    updated = store.update(owner, evaluation.id, EvaluationUpdate.model_validate({"carDetails": {"price": 16500}}))
    assert updated.price == 16500
    assert updated.make == "Honda"


def test_invalid_update_leaves_record_untouched(store, owner):
    evaluation = create(store, owner)
    before = evaluation.updated_at
    patch = EvaluationUpdate.model_validate({"carDetails": {"year": 1970}, "status": "archived"})

    with pytest.raises(ValidationError) as exc_info:
        store.update(owner, evaluation.id, patch)

    assert exc_info.value.errors[0]["field"] == "carDetails.year"
    reloaded = store.get(owner, evaluation.id)
    assert reloaded.year == 2020
    assert reloaded.status == "draft"
    assert reloaded.updated_at == before


def test_explicit_status_patch_reaches_reserved_status(store, owner):
    evaluation = create(store, owner)
    updated = store.update(owner, evaluation.id, EvaluationUpdate(status="awaiting_carfax"))
    assert updated.status == "awaiting_carfax"


def test_carfax_patch_merges(store, owner):
    evaluation = create(store, owner)
    updated = store.update(owner, evaluation.id, EvaluationUpdate.model_validate({"carfax": {"wantCarfax": True}}))
    assert updated.carfax["want_carfax"] is True
    assert updated.carfax["vin"] == evaluation.vin


def test_get_foreign_record_is_not_found(store, owner, make_user):
    evaluation = create(store, owner)
    intruder = UserPrincipal(make_user(email="intruder@example.com").id)
    with pytest.raises(NotFound):
        store.get(intruder, evaluation.id)
    with pytest.raises(Forbidden):
        store.analyze(intruder, evaluation.id, StubMarketEstimator())


def test_delete(store, owner):
    evaluation = create(store, owner)
    store.delete(owner, evaluation.id)
    with pytest.raises(NotFound):
        store.get(owner, evaluation.id)


def test_workflow_progression(store):
    principal = GuestPrincipal("session-xyz")
    evaluation = create(store, principal)

    evaluation, analysis = store.analyze(principal, evaluation.id, StubMarketEstimator())
    assert (evaluation.status, evaluation.progress) == ("analyzing", 45)
    assert evaluation.deal_score == analysis.deal_score

    evaluation = store.update_inspection(
        principal,
        evaluation.id,
        InspectionType.MECHANICAL,
        {"results": [{"category": "Engine", "item": "Timing belt", "status": "fail"}]},
    )
    assert (evaluation.status, evaluation.progress) == ("in_progress", 55)
    assert evaluation.inspection["mechanical"]["completed"] is True

    evaluation = store.add_photo(principal, evaluation.id, "front.jpg", "https://cdn.example.com/front.jpg")
    assert evaluation.progress == 65
    assert evaluation.photos[0]["filename"] == "front.jpg"

    evaluation, recs = store.generate_recommendations(principal, evaluation.id, RecommendationEngine(random.Random(4)))
    assert (evaluation.status, evaluation.progress) == ("completed", 80)
    assert len(recs.repair_costs) == 1

    evaluation, _ = store.analyze(principal, evaluation.id, StubMarketEstimator())
    assert evaluation.status == "analyzing"


def test_invalid_inspection_results_rejected(store, owner):
    evaluation = create(store, owner)
    with pytest.raises(ValidationError):
        store.update_inspection(
            owner, evaluation.id, InspectionType.PAPERWORK, {"vinMatch": "maybe"}
        )
    assert store.get(owner, evaluation.id).inspection["paperwork"]["completed"] is False


def test_timestamps_are_timezone_aware(store, owner):
    assert utcnow().tzinfo is timezone.utc

    before = utcnow()
    evaluation = create(store, owner)
    updated = store.add_photo(owner, evaluation.id, "rear.jpg", "https://cdn.example.com/rear.jpg")
    uploaded_at = datetime.fromisoformat(updated.photos[0]["uploaded_at"].replace("Z", "+00:00"))
    assert uploaded_at >= before
