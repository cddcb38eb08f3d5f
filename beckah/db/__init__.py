"""
Supabase database access.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

import structlog
from supabase import Client, create_client

from beckah.config import settings

logger = structlog.get_logger()

ORDER_SELECT = """
    *,
    order_items(
        *,
        products(id, title, price, image_url, images, seller_id)
    ),
    profiles!orders_buyer_id_fkey(full_name, email)
"""

PROFILE_EMAIL_FIELDS = "id, full_name, email, role, email_notifications_enabled, email_preferences"


@lru_cache
def get_supabase_client() -> Client:
    """
    Return the Supabase client singleton.

    Uses lru_cache to keep a single instance per process.
    """
    url = settings.require("supabase_url")
    key = settings.require("supabase_key")

    logger.info(
        "supabase_connecting",
        url=url[:50] + "...",
    )

    client = create_client(url, key)

    logger.info("supabase_connected")
    return client


def _first(result: Any) -> Optional[Dict[str, Any]]:
    # maybe_single() yields None instead of a response when nothing matches
    if result is None or not result.data:
        return None
    return result.data


class Database:
    """
    Wrapper around the marketplace tables.

    One convenience method per query the handlers need.
    """

    def __init__(self):
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        """Supabase client (lazy loading)."""
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def table(self, name: str):
        """Access a table."""
        return self.client.table(name)

    # ==========================================
    # Submissions and products
    # ==========================================

    async def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a submission together with its category name."""
        result = (
            self.table("product_submissions")
            .select("*, categories(name)")
            .eq("id", submission_id)
            .maybe_single()
            .execute()
        )
        return _first(result)

    async def get_submission_with_seller(self, submission_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a submission with the submitter's profile."""
        result = (
            self.table("product_submissions")
            .select(f"*, profiles({PROFILE_EMAIL_FIELDS})")
            .eq("id", submission_id)
            .maybe_single()
            .execute()
        )
        return _first(result)

    async def update_submission(self, submission_id: str, data: Dict[str, Any]) -> None:
        self.table("product_submissions").update(data).eq("id", submission_id).execute()

    async def create_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a product and return the stored row."""
        result = self.table("products").insert(data).execute()
        return result.data[0] if result.data else data

    async def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        result = (
            self.table("products")
            .select("id, title, price, image_url, images")
            .eq("id", product_id)
            .maybe_single()
            .execute()
        )
        return _first(result)

    # ==========================================
    # Profiles and notifications
    # ==========================================

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = (
            self.table("profiles")
            .select(PROFILE_EMAIL_FIELDS)
            .eq("id", user_id)
            .maybe_single()
            .execute()
        )
        return _first(result)

    async def get_profiles(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        if not user_ids:
            return []
        result = (
            self.table("profiles")
            .select(PROFILE_EMAIL_FIELDS)
            .in_("id", user_ids)
            .execute()
        )
        return result.data or []

    async def get_admins(self) -> List[Dict[str, Any]]:
        """All admin profiles."""
        result = (
            self.table("profiles")
            .select(PROFILE_EMAIL_FIELDS)
            .eq("role", "admin")
            .execute()
        )
        return result.data or []

    async def insert_notifications(self, rows: List[Dict[str, Any]]) -> None:
        if not rows:
            return
        self.table("notifications").insert(rows).execute()

    # ==========================================
    # Orders and carts
    # ==========================================

    async def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        """Fetch an order with its items, products and buyer profile."""
        result = (
            self.table("orders")
            .select(ORDER_SELECT)
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )
        return _first(result)

    async def get_cart_items(self, user_id: str) -> List[Dict[str, Any]]:
        result = (
            self.table("cart_items")
            .select("*, products(id, title, price, image_url)")
            .eq("user_id", user_id)
            .execute()
        )
        return result.data or []

    # ==========================================
    # Email logs
    # ==========================================

    async def insert_email_log(self, data: Dict[str, Any]) -> None:
        self.table("email_logs").insert(data).execute()

    async def update_email_log(self, log_id: str, data: Dict[str, Any]) -> None:
        self.table("email_logs").update(data).eq("id", log_id).execute()

    # ==========================================
    # Health
    # ==========================================

    async def ping(self) -> None:
        """Cheap query used by the readiness check."""
        self.table("categories").select("id").limit(1).execute()


# Global instance
db = Database()
