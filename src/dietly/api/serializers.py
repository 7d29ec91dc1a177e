"""JSON rendering of domain objects.

Nutrition values are rounded here and nowhere else.
"""

from collections.abc import Mapping
from datetime import date, datetime
from uuid import UUID

from dietly.domain.admin import DashboardCounts
from dietly.domain.meal_plans import Adherence, MealEntry, MealPlan, PlanDay
from dietly.domain.meals import Meal
from dietly.domain.models import UserProfile
from dietly.domain.nutrition import DailyStatus, NutritionTotals, PlanNutrition
from dietly.domain.progress import ProgressEntry, ProgressStats, SeriesStats
from dietly.domain.recommendations import Recommendation
from dietly.services.nutrition import round_totals
from dietly.services.users import NutritionNeeds


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_totals(totals: NutritionTotals) -> dict[str, float]:
    rounded = round_totals(totals)
    return {
        "calories": rounded.calories,
        "protein": rounded.protein,
        "carbohydrates": rounded.carbohydrates,
        "fats": rounded.fats,
        "fiber": rounded.fiber,
        "sugar": rounded.sugar,
        "sodium": rounded.sodium,
    }


def serialize_meal(meal: Meal) -> dict[str, object]:
    """Render a catalog meal."""
    return {
        "id": str(meal.id),
        "name": meal.name,
        "mealType": meal.meal_type,
        "description": meal.description,
        "servings": meal.servings,
        "difficulty": meal.difficulty,
        "nutrition": {
            "calories": meal.nutrition.calories,
            "protein": meal.nutrition.protein,
            "carbohydrates": meal.nutrition.carbohydrates,
            "fats": meal.nutrition.fats,
            "fiber": meal.nutrition.fiber,
            "sugar": meal.nutrition.sugar,
            "sodium": meal.nutrition.sodium,
        },
        "ingredients": [
            {
                "name": item.name,
                "amount": item.amount,
                "unit": item.unit,
                "allergens": list(item.allergens),
            }
            for item in meal.ingredients
        ],
        "instructions": list(meal.instructions),
        "dietaryTags": sorted(meal.dietary_tags),
        "allergens": sorted(meal.allergens),
        "prepTime": meal.prep_time,
        "cookTime": meal.cook_time,
        "totalTime": meal.total_time,
        "imageUrl": meal.image_url,
        "source": meal.source,
        "isActive": meal.is_active,
        "createdAt": _iso(meal.created_at),
    }


def _serialize_entry(
    entry: MealEntry | None, meals: Mapping[UUID, Meal]
) -> dict[str, object] | None:
    if entry is None:
        return None
    meal = meals.get(entry.meal_id)
    return {
        "meal": serialize_meal(meal) if meal else {"id": str(entry.meal_id)},
        "servings": entry.servings,
        "consumed": entry.consumed,
        "consumedAt": _iso(entry.consumed_at),
    }


def serialize_day(day: PlanDay, meals: Mapping[UUID, Meal]) -> dict[str, object]:
    return {
        "date": day.date.isoformat(),
        "weekNumber": day.week_number,
        "notes": day.notes,
        "meals": {
            "breakfast": _serialize_entry(day.meals.breakfast, meals),
            "lunch": _serialize_entry(day.meals.lunch, meals),
            "dinner": _serialize_entry(day.meals.dinner, meals),
            "snacks": [_serialize_entry(entry, meals) for entry in day.meals.snacks],
        },
    }


def serialize_adherence(adherence: Adherence) -> dict[str, object]:
    return {
        "consumedMeals": adherence.consumed_meals,
        "totalMeals": adherence.total_meals,
        "adherencePercentage": round(adherence.adherence_percentage, 1),
    }


def serialize_plan(
    plan: MealPlan, meals: Mapping[UUID, Meal] | None = None
) -> dict[str, object]:
    """Render a meal plan, embedding meal details when they are supplied."""
    resolved = meals or {}
    return {
        "id": str(plan.id),
        "userId": str(plan.user_id),
        "name": plan.name,
        "startDate": plan.start_date.isoformat(),
        "endDate": plan.end_date.isoformat(),
        "duration": plan.duration,
        "status": plan.status,
        "generatedBy": plan.generated_by,
        "targetNutrition": {
            "dailyCalories": plan.target_nutrition.daily_calories,
            "protein": plan.target_nutrition.protein,
            "carbohydrates": plan.target_nutrition.carbohydrates,
            "fats": plan.target_nutrition.fats,
        },
        "days": [serialize_day(day, resolved) for day in plan.days],
        "adherence": serialize_adherence(plan.adherence),
        "stoppedAt": _iso(plan.stopped_at),
        "version": plan.version,
        "createdAt": _iso(plan.created_at),
        "updatedAt": _iso(plan.updated_at),
    }


def serialize_plan_summary(plan: MealPlan) -> dict[str, object]:
    """Render a plan without its days for listings."""
    summary = serialize_plan(plan)
    summary.pop("days")
    return summary


def serialize_plan_nutrition(
    plan: MealPlan, nutrition: PlanNutrition
) -> dict[str, object]:
    return {
        "planId": str(plan.id),
        "targetCalories": plan.target_nutrition.daily_calories,
        "totals": serialize_totals(nutrition.totals),
        "averageCalories": round(nutrition.average_calories, 1),
        "daily": [
            {"date": item.date.isoformat(), **serialize_totals(item.totals)}
            for item in nutrition.daily
        ],
    }


def serialize_daily_status(status: DailyStatus) -> dict[str, object]:
    return {
        "date": status.date.isoformat(),
        "weekNumber": status.week_number,
        "planned": serialize_totals(status.planned),
        "consumedCalories": round(status.consumed_calories, 1),
        "targetCalories": status.target_calories,
        "completionPercentage": round(status.completion_percentage, 1),
        "adherence": serialize_adherence(status.adherence),
    }


def serialize_profile(profile: UserProfile) -> dict[str, object]:
    """Render a user profile."""
    return {
        "id": str(profile.id),
        "name": profile.name,
        "email": profile.email,
        "role": profile.role,
        "age": profile.age,
        "gender": profile.gender,
        "height": profile.height,
        "currentWeight": profile.current_weight,
        "targetWeight": profile.target_weight,
        "healthGoal": profile.health_goal,
        "activityLevel": profile.activity_level,
        "dailyCalorieTarget": profile.daily_calorie_target,
        "dietaryPreferences": sorted(profile.dietary_preferences),
        "allergies": sorted(profile.allergies),
        "timezone": profile.timezone,
        "profileComplete": profile.is_complete(),
        "missingFields": profile.missing_fields(),
        "createdAt": _iso(profile.created_at),
    }


def serialize_needs(needs: NutritionNeeds) -> dict[str, object]:
    return {
        "bmr": round(needs.bmr),
        "tdee": round(needs.tdee),
        "dailyCalories": needs.daily_calories,
        "macros": {
            "protein": needs.macros.protein,
            "carbohydrates": needs.macros.carbohydrates,
            "fats": needs.macros.fats,
        },
        "bmi": needs.bmi,
        "bmiCategory": needs.bmi_category,
    }


def serialize_progress(entry: ProgressEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "date": entry.entry_date.isoformat(),
        "weight": entry.weight,
        "bmi": entry.bmi,
        "energyLevel": entry.energy_level,
        "activityMinutes": entry.activity_minutes,
        "waterIntake": entry.water_intake,
        "sleepHours": entry.sleep_hours,
        "mood": entry.mood,
        "notes": entry.notes,
        "updatedAt": _iso(entry.updated_at),
    }


def _serialize_series(series: SeriesStats | None) -> dict[str, object] | None:
    if series is None:
        return None
    return {
        "starting": series.starting,
        "current": series.current,
        "change": series.change,
        "average": series.average,
        "min": series.minimum,
        "max": series.maximum,
    }


def serialize_progress_stats(stats: ProgressStats | None) -> dict[str, object] | None:
    if stats is None:
        return None
    return {
        "totalEntries": stats.total_entries,
        "dateRange": {
            "start": stats.start_date.isoformat(),
            "end": stats.end_date.isoformat(),
        },
        "weight": _serialize_series(stats.weight),
        "bmi": _serialize_series(stats.bmi),
        "energyLevel": (
            {"average": stats.average_energy}
            if stats.average_energy is not None
            else None
        ),
        "trends": {
            "weightTrend": stats.weight.trend if stats.weight else "insufficient_data",
            "bmiTrend": stats.bmi.trend if stats.bmi else "insufficient_data",
        },
    }


def serialize_recommendation(recommendation: Recommendation) -> dict[str, object]:
    return {
        "id": str(recommendation.id),
        "type": recommendation.kind,
        "priority": recommendation.priority,
        "title": recommendation.title,
        "description": recommendation.description,
        "reasoning": recommendation.reasoning,
        "actionSteps": [
            {
                "step": step.step,
                "completed": step.completed,
                "completedAt": _iso(step.completed_at),
            }
            for step in recommendation.action_steps
        ],
        "status": recommendation.status,
        "applied": recommendation.applied,
        "appliedAt": _iso(recommendation.applied_at),
        "generatedBy": recommendation.generated_by,
        "confidence": recommendation.confidence,
        "createdAt": _iso(recommendation.created_at),
        "updatedAt": _iso(recommendation.updated_at),
    }


def serialize_dashboard(counts: DashboardCounts) -> dict[str, object]:
    return {
        "users": {
            "total": counts.users,
            "admins": counts.admins,
            "regular": counts.users - counts.admins,
            "withActivePlan": counts.users_with_active_plans,
        },
        "meals": {
            "total": counts.meals_total,
            "active": counts.meals_active,
            "inactive": counts.meals_total - counts.meals_active,
        },
        "mealPlans": {
            "total": sum(counts.plans_by_status.values()),
            "byStatus": dict(counts.plans_by_status),
        },
        "progressEntries": counts.progress_entries,
    }
