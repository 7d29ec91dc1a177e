"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from dietly.adapters.supabase_admin_repository import SupabaseAdminRepository
from dietly.adapters.supabase_audit_repository import SupabaseAuditRepository
from dietly.adapters.supabase_auth import SupabaseTokenVerifier, TokenVerifier
from dietly.adapters.supabase_meal_plan_repository import SupabaseMealPlanRepository
from dietly.adapters.supabase_meal_repository import SupabaseMealRepository
from dietly.adapters.supabase_progress_repository import SupabaseProgressRepository
from dietly.adapters.supabase_recommendation_repository import (
    SupabaseRecommendationRepository,
)
from dietly.adapters.supabase_user_repository import SupabaseUserRepository
from dietly.config import Settings
from dietly.services.admin import AdminService
from dietly.services.audit import AuditService
from dietly.services.catalog import MealCatalogService
from dietly.services.generator import MealPlanGenerator
from dietly.services.meal_plans import MealPlanService
from dietly.services.progress import ProgressService
from dietly.services.recommendations import RecommendationService
from dietly.services.selection import MealSelectionService
from dietly.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    token_verifier: TokenVerifier
    user_service: UserService
    catalog_service: MealCatalogService
    meal_plan_service: MealPlanService
    progress_service: ProgressService
    recommendation_service: RecommendationService
    admin_service: AdminService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_repository = SupabaseMealRepository(supabase_client)
    plan_repository = SupabaseMealPlanRepository(supabase_client)
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    user_service = UserService(
        SupabaseUserRepository(supabase_client), audit_service=audit_service
    )
    catalog_service = MealCatalogService(meal_repository, audit_service=audit_service)
    generator = MealPlanGenerator(
        selection_service=MealSelectionService(
            meal_repository, min_options=resolved_settings.min_weekly_options
        ),
        default_daily_calories=resolved_settings.default_daily_calories,
        weekly_options=resolved_settings.min_weekly_options,
        max_snacks_per_day=resolved_settings.max_snacks_per_day,
        tolerance_floor=resolved_settings.calorie_tolerance_floor,
        tolerance_ratio=resolved_settings.calorie_tolerance_ratio,
    )
    meal_plan_service = MealPlanService(
        repository=plan_repository,
        generator=generator,
        catalog_service=catalog_service,
        default_timezone=resolved_settings.default_timezone,
    )
    progress_service = ProgressService(
        SupabaseProgressRepository(supabase_client),
        user_service=user_service,
        default_timezone=resolved_settings.default_timezone,
    )
    recommendation_service = RecommendationService(
        SupabaseRecommendationRepository(supabase_client),
        meal_plan_service=meal_plan_service,
        progress_service=progress_service,
    )
    admin_service = AdminService(
        admin_repository=SupabaseAdminRepository(supabase_client),
        plan_repository=plan_repository,
        audit_service=audit_service,
    )
    return AppContainer(
        settings=resolved_settings,
        token_verifier=SupabaseTokenVerifier(supabase_client),
        user_service=user_service,
        catalog_service=catalog_service,
        meal_plan_service=meal_plan_service,
        progress_service=progress_service,
        recommendation_service=recommendation_service,
        admin_service=admin_service,
    )
