"""Supabase admin data access."""

from collections import Counter
from dataclasses import dataclass

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.domain.meal_plans import ACTIVE
from dietly.services.admin import AdminRepository


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase implementation for dashboard counters."""

    client: Client

    def count_profiles_by_role(self) -> dict[str, int]:
        """Return the number of profiles per role."""
        with storage_errors("count profiles"):
            response = self.client.table("profiles").select("role").execute()
        return dict(Counter(str(row.get("role")) for row in response.data or []))

    def count_meals(self, active_only: bool) -> int:
        """Return the number of catalog meals."""
        query = self.client.table("meals").select("id", count="exact", head=True)
        if active_only:
            query = query.eq("is_active", True)
        with storage_errors("count meals"):
            response = query.execute()
        return response.count or 0

    def count_plans_by_status(self) -> dict[str, int]:
        """Return the number of meal plans per status."""
        with storage_errors("count meal plans"):
            response = self.client.table("meal_plans").select("status").execute()
        return dict(Counter(str(row.get("status")) for row in response.data or []))

    def count_users_with_active_plans(self) -> int:
        """Return how many users currently follow an active plan."""
        with storage_errors("count active plans"):
            response = (
                self.client.table("meal_plans")
                .select("user_id")
                .eq("status", ACTIVE)
                .execute()
            )
        return len({row.get("user_id") for row in response.data or []})

    def count_progress_entries(self) -> int:
        """Return the number of progress entries."""
        with storage_errors("count progress entries"):
            response = (
                self.client.table("progress_entries")
                .select("id", count="exact", head=True)
                .execute()
            )
        return response.count or 0
