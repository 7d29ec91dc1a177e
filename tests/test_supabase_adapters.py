"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import date
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from postgrest.exceptions import APIError
from supabase import AuthApiError, AuthRetryableError

from dietly.adapters.supabase_admin_repository import SupabaseAdminRepository
from dietly.adapters.supabase_audit_repository import SupabaseAuditRepository
from dietly.adapters.supabase_auth import SupabaseTokenVerifier
from dietly.adapters.supabase_meal_plan_repository import (
    SupabaseMealPlanRepository,
    parse_plan,
    plan_to_row,
)
from dietly.adapters.supabase_meal_repository import SupabaseMealRepository
from dietly.adapters.supabase_progress_repository import SupabaseProgressRepository
from dietly.adapters.supabase_recommendation_repository import (
    SupabaseRecommendationRepository,
    parse_recommendation,
    recommendation_to_row,
)
from dietly.adapters.supabase_user_repository import SupabaseUserRepository
from dietly.domain.errors import (
    ActivePlanExistsError,
    MealNotFoundError,
    PersistenceError,
    PlanConflictError,
    PlanNotFoundError,
    RecommendationNotFoundError,
    UserNotFoundError,
)
from dietly.domain.meal_plans import MealPlan
from dietly.domain.recommendations import ActionStep, Recommendation
from dietly.services.generator import MealPlanGenerator
from tests.conftest import NOW, TODAY, complete_profile

QueuedResult = list[dict[str, object]] | APIError


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None
    count: int | None = None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[QueuedResult]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    count: int | None = None
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_on_conflict: str | None = None

    def queue(self, action: str, data: QueuedResult) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args, count: str | None = None, head: bool = False) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def upsert(self, payload, on_conflict: str | None = None) -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.last_on_conflict = on_conflict
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":
        self.last_filters.append((f"{column}>=", value))
        return self

    def lte(self, column: str, value) -> "FakeTable":
        self.last_filters.append((f"{column}<=", value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        if isinstance(data, APIError):
            raise data
        return FakeResponse(data=data, count=self.count)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _api_error(code: str) -> APIError:
    return APIError({"message": "boom", "code": code, "details": "", "hint": ""})


def _meal_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "name": "Oatmeal",
        "meal_type": "breakfast",
        "calories": 400,
        "protein": 15,
        "ingredients": [{"name": "oats", "amount": 80, "unit": "g", "allergens": []}],
        "dietary_tags": ["vegetarian"],
        "allergens": [],
        "is_active": True,
        "created_at": "2024-03-01T08:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def plan(generator: MealPlanGenerator) -> MealPlan:
    return generator.generate(complete_profile(), TODAY, 3, TODAY, seed=1)


def test_supabase_meal_repository() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    row = _meal_row()
    meals_table.queue("select", [row])
    meals_table.queue("select", [row])
    meals_table.queue("insert", [row])

    repository = SupabaseMealRepository(client)
    listed = repository.list_meals(meal_type="breakfast")
    assert ("meal_type", "breakfast") in meals_table.last_filters
    assert ("is_active", True) in meals_table.last_filters
    fetched = repository.get_meals([UUID(str(row["id"]))])
    created = repository.create_meal(
        {"name": "Oatmeal", "nutrition": {"calories": 400, "protein": 15}},
        created_by=None,
    )

    assert listed[0].nutrition.calories == 400
    assert listed[0].dietary_tags == frozenset({"vegetarian"})
    assert listed[0].created_at is not None
    assert fetched[0].id == UUID(str(row["id"]))
    assert created.name == "Oatmeal"
    assert meals_table.last_payload["calories"] == 400
    assert "nutrition" not in meals_table.last_payload


def test_supabase_meal_repository_missing_meal() -> None:
    client = FakeSupabaseClient()

    repository = SupabaseMealRepository(client)

    assert repository.get_meal(uuid4()) is None
    assert repository.get_meals([]) == []
    with pytest.raises(MealNotFoundError):
        repository.set_active(uuid4(), False)


def test_supabase_user_repository() -> None:
    client = FakeSupabaseClient()
    profiles_table = client.table("profiles")
    user_id = uuid4()
    row = {
        "id": str(user_id),
        "name": "Test",
        "email": "test@example.com",
        "role": "user",
        "height": "165.5",
        "allergies": ["nuts"],
    }
    profiles_table.queue("insert", [row])
    profiles_table.queue("select", [row])
    profiles_table.queue("update", [{**row, "age": 31}])

    repository = SupabaseUserRepository(client)
    created = repository.create_profile(user_id, email="test@example.com", name="Test")
    fetched = repository.get_profile(user_id)
    updated = repository.update_profile(user_id, {"age": 31})

    assert created.id == user_id
    assert fetched.height == 165.5
    assert fetched.allergies == frozenset({"nuts"})
    assert updated.age == 31
    with pytest.raises(UserNotFoundError):
        repository.update_profile(user_id, {"age": 32})


def test_supabase_plan_repository_roundtrip(plan: MealPlan) -> None:
    client = FakeSupabaseClient()
    plans_table = client.table("meal_plans")
    plans_table.queue("insert", [plan_to_row(plan)])

    created = SupabaseMealPlanRepository(client).create_plan(plan)

    assert created == plan
    assert plans_table.last_payload["days"][0]["date"] == TODAY.isoformat()


def test_supabase_plan_repository_maps_unique_violation(plan: MealPlan) -> None:
    client = FakeSupabaseClient()
    client.table("meal_plans").queue("insert", _api_error("23505"))

    with pytest.raises(ActivePlanExistsError):
        SupabaseMealPlanRepository(client).create_plan(plan)


def test_supabase_plan_repository_version_guard(plan: MealPlan) -> None:
    client = FakeSupabaseClient()
    plans_table = client.table("meal_plans")
    stored = {**plan_to_row(plan), "version": plan.version + 1}
    plans_table.queue("update", [stored])

    repository = SupabaseMealPlanRepository(client)
    updated = repository.update_plan(plan)

    assert updated.version == plan.version + 1
    assert plans_table.last_payload["version"] == plan.version + 1
    assert "id" not in plans_table.last_payload
    assert ("version", plan.version) in plans_table.last_filters


def test_supabase_plan_repository_conflict_and_missing(plan: MealPlan) -> None:
    client = FakeSupabaseClient()
    plans_table = client.table("meal_plans")
    repository = SupabaseMealPlanRepository(client)

    plans_table.queue("update", [])
    plans_table.queue("select", [plan_to_row(plan)])
    with pytest.raises(PlanConflictError):
        repository.update_plan(plan)

    plans_table.queue("update", [])
    plans_table.queue("select", [])
    with pytest.raises(PlanNotFoundError):
        repository.update_plan(plan)


def test_supabase_plan_repository_active_lookup(plan: MealPlan) -> None:
    client = FakeSupabaseClient()
    plans_table = client.table("meal_plans")
    plans_table.queue("select", [plan_to_row(plan)])

    active = SupabaseMealPlanRepository(client).find_active_plan(plan.user_id)

    assert active.id == plan.id
    assert ("status", "active") in plans_table.last_filters


def test_parse_plan_defaults() -> None:
    plan = parse_plan(
        {
            "id": str(uuid4()),
            "user_id": str(uuid4()),
            "start_date": "2024-03-10",
            "end_date": "2024-03-12",
            "status": "draft",
            "days": [
                {"date": "2024-03-10", "meals": {"breakfast": None, "snacks": []}}
            ],
        }
    )

    assert plan.version == 0
    assert plan.days[0].meals.breakfast is None
    assert plan.target_nutrition.daily_calories == 0.0


def test_supabase_progress_repository() -> None:
    client = FakeSupabaseClient()
    progress_table = client.table("progress_entries")
    user_id = uuid4()
    row = {
        "id": str(uuid4()),
        "user_id": str(user_id),
        "entry_date": "2024-03-10",
        "weight": 64.0,
        "bmi": 23.5,
    }
    progress_table.queue("upsert", [row])
    progress_table.queue("select", [row])

    repository = SupabaseProgressRepository(client)
    saved = repository.upsert_entry(user_id, date(2024, 3, 10), {"weight": 64.0})
    listed = repository.list_entries(user_id, start=date(2024, 3, 1))

    assert saved.weight == 64.0
    assert progress_table.last_on_conflict == "user_id,entry_date"
    assert listed[0].entry_date == date(2024, 3, 10)
    assert ("entry_date>=", "2024-03-01") in progress_table.last_filters


def test_supabase_recommendation_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("recommendations")
    user_id = uuid4()
    recommendation = Recommendation(
        id=uuid4(),
        user_id=user_id,
        kind="exercise",
        priority="medium",
        title="Increase Physical Activity",
        description="Move more.",
        action_steps=(ActionStep("Walk daily"),),
        created_at=NOW,
        updated_at=NOW,
    )
    row = recommendation_to_row(recommendation)
    table.queue("insert", [row])
    table.queue("select", [row])
    table.queue("update", [])

    repository = SupabaseRecommendationRepository(client)
    saved = repository.create_recommendation(recommendation)
    listed = repository.list_recommendations(user_id)

    assert table.last_filters == [("user_id", str(user_id))]
    assert row["type"] == "exercise"
    assert row["action_steps"] == [
        {"step": "Walk daily", "completed": False, "completed_at": None}
    ]
    assert saved == recommendation
    assert listed == [recommendation]
    with pytest.raises(RecommendationNotFoundError):
        repository.update_recommendation(recommendation)
    assert "user_id" not in table.last_payload


def test_parse_recommendation_defaults() -> None:
    parsed = parse_recommendation({"id": str(uuid4()), "user_id": str(uuid4())})

    assert parsed.kind == "general"
    assert parsed.status == "active"
    assert parsed.action_steps == ()
    assert parsed.created_at is None


def test_supabase_audit_repository() -> None:
    client = FakeSupabaseClient()
    audit_table = client.table("audit_events")
    entity_id = uuid4()
    audit_table.queue("select", [{"id": "audit"}])

    repository = SupabaseAuditRepository(client)
    repository.create_event(
        actor_id=uuid4(),
        entity_type="meal",
        entity_id=entity_id,
        event_type="created",
        before=None,
        after={"name": "Oatmeal"},
    )
    assert audit_table.last_payload["entity_id"] == str(entity_id)
    assert audit_table.last_payload["after_json"] == {"name": "Oatmeal"}
    assert repository.list_events(entity_id, limit=5) == [{"id": "audit"}]


def test_supabase_admin_repository() -> None:
    client = FakeSupabaseClient()
    client.table("profiles").queue("select", [{"role": "user"}, {"role": "admin"}])
    client.table("meals").count = 12
    client.table("meal_plans").queue(
        "select", [{"status": "active"}, {"status": "draft"}]
    )
    client.table("meal_plans").queue(
        "select", [{"user_id": "a"}, {"user_id": "a"}, {"user_id": "b"}]
    )
    client.table("progress_entries").count = 4

    repository = SupabaseAdminRepository(client)

    assert repository.count_profiles_by_role() == {"user": 1, "admin": 1}
    assert repository.count_meals(active_only=True) == 12
    assert repository.count_plans_by_status() == {"active": 1, "draft": 1}
    assert repository.count_users_with_active_plans() == 2
    assert repository.count_progress_entries() == 4


def test_storage_errors_become_persistence_errors() -> None:
    client = FakeSupabaseClient()
    client.table("meals").queue("select", _api_error("08006"))

    with pytest.raises(PersistenceError, match="list meals"):
        SupabaseMealRepository(client).list_meals()


def test_token_verifier() -> None:
    user_id = uuid4()
    user = SimpleNamespace(
        id=str(user_id), email="jane@example.com", user_metadata={}
    )

    def get_user(token: str) -> SimpleNamespace:
        if token != "good":
            raise AuthApiError("invalid JWT", 401, None)
        return SimpleNamespace(user=user)

    client = SimpleNamespace(auth=SimpleNamespace(get_user=get_user))
    verifier = SupabaseTokenVerifier(client)

    identity = verifier.verify("good")

    assert identity.user_id == user_id
    assert identity.name == "jane"
    assert verifier.verify("bad") is None


@pytest.mark.parametrize(
    "error",
    [
        AuthRetryableError("connection refused", 0),
        AuthApiError("upstream failure", 500, None),
    ],
)
def test_token_verifier_outage_is_a_storage_error(error: Exception) -> None:
    def get_user(_token: str) -> SimpleNamespace:
        raise error

    client = SimpleNamespace(auth=SimpleNamespace(get_user=get_user))

    with pytest.raises(PersistenceError):
        SupabaseTokenVerifier(client).verify("good")
