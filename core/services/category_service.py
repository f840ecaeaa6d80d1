# =============================================================================
# core/services/category_service.py - Service Category Associations
# =============================================================================
# A business is approved for service categories and subcategories through
# two join tables:
#   business_service_categories     (business_id, category_id, is_active)
#   business_service_subcategories  (business_id, category_id, subcategory_id, is_active)
#
# Associations are replaced wholesale (delete then insert). PostgREST offers
# no multi-statement transaction, so the rows present before the rewrite are
# snapshotted and re-inserted if any later step fails.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from app.exceptions import DatabaseError, InvalidRequestError

logger = logging.getLogger(__name__)

CATEGORY_TABLE = "business_service_categories"
SUBCATEGORY_TABLE = "business_service_subcategories"

_CATEGORY_COLUMNS = "business_id, category_id, is_active"
_SUBCATEGORY_COLUMNS = "business_id, category_id, subcategory_id, is_active"


class CategoryAssociationService:
    """Reads and rewrites a business's category/subcategory associations."""

    @staticmethod
    def get_associations(business_id: str) -> dict[str, Any]:
        """
        Current associations for a business.

        Returns:
            Dict with category_ids, subcategory_ids and the raw rows
        """
        categories = SupabaseClient.fetch_many(
            CATEGORY_TABLE,
            filters={"business_id": business_id},
            columns="category_id, is_active, service_categories(id, service_category_type)",
        )
        subcategories = SupabaseClient.fetch_many(
            SUBCATEGORY_TABLE,
            filters={"business_id": business_id},
            columns=(
                "category_id, subcategory_id, is_active, "
                "service_subcategories(id, service_subcategory_type)"
            ),
        )

        return {
            "business_id": business_id,
            "category_ids": [row["category_id"] for row in categories],
            "subcategory_ids": [row["subcategory_id"] for row in subcategories],
            "categories": categories,
            "subcategories": subcategories,
        }

    @staticmethod
    def resolve_subcategories(subcategory_ids: list[str]) -> list[dict[str, Any]]:
        """
        Look up the parent category of each subcategory.

        Raises:
            InvalidRequestError: If any subcategory id is unknown
        """
        if not subcategory_ids:
            return []

        rows = SupabaseClient.fetch_many(
            "service_subcategories",
            columns="id, category_id",
            in_filters={"id": subcategory_ids},
        )

        found = {row["id"] for row in rows}
        unknown = [sub_id for sub_id in subcategory_ids if sub_id not in found]
        if unknown:
            raise InvalidRequestError(
                "Unknown service subcategories",
                details={"subcategory_ids": unknown},
            )
        return rows

    @staticmethod
    def replace_associations(
        business_id: str,
        category_ids: list[str],
        subcategory_ids: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Replace all category and subcategory associations of a business.

        Subcategories whose parent category isn't listed bring their parent
        along, so every stored subcategory has its category stored too.

        Args:
            business_id: Business UUID
            category_ids: Categories to associate (at least one)
            subcategory_ids: Subcategories to associate; empty clears them

        Returns:
            Dict with the category_ids and subcategory_ids now stored

        Raises:
            InvalidRequestError: No categories, or unknown subcategories
            DatabaseError: If the rewrite fails (previous rows are restored)
        """
        if not category_ids:
            raise InvalidRequestError(
                "At least one service category must be selected",
                details={"category_ids": category_ids},
            )

        subcategories = CategoryAssociationService.resolve_subcategories(
            list(dict.fromkeys(subcategory_ids or []))
        )

        ordered_categories = list(dict.fromkeys(category_ids))
        for sub in subcategories:
            if sub["category_id"] not in ordered_categories:
                ordered_categories.append(sub["category_id"])

        category_rows = [
            {"business_id": business_id, "category_id": category_id, "is_active": True}
            for category_id in ordered_categories
        ]
        subcategory_rows = [
            {
                "business_id": business_id,
                "category_id": sub["category_id"],
                "subcategory_id": sub["id"],
                "is_active": True,
            }
            for sub in subcategories
        ]

        snapshot = CategoryAssociationService._snapshot(business_id)
        client = SupabaseClient.get_client()

        try:
            client.table(SUBCATEGORY_TABLE).delete().eq("business_id", business_id).execute()
            client.table(CATEGORY_TABLE).delete().eq("business_id", business_id).execute()

            client.table(CATEGORY_TABLE).insert(category_rows).execute()
            if subcategory_rows:
                client.table(SUBCATEGORY_TABLE).insert(subcategory_rows).execute()

        except Exception as e:
            logger.error(f"Category rewrite failed for business {business_id}: {e}")
            CategoryAssociationService._restore(business_id, snapshot)
            raise DatabaseError("update service categories", str(e))

        logger.info(
            f"Replaced associations for business {business_id}: "
            f"{len(category_rows)} categories, {len(subcategory_rows)} subcategories"
        )

        return {
            "business_id": business_id,
            "category_ids": ordered_categories,
            "subcategory_ids": [sub["id"] for sub in subcategories],
        }

    # -------------------------------------------------------------------------
    # Snapshot / restore
    # -------------------------------------------------------------------------

    @staticmethod
    def _snapshot(business_id: str) -> dict[str, list[dict[str, Any]]]:
        """
        Rows present before a rewrite.

        Raises:
            DatabaseError: If the current rows can't be read (nothing is deleted)
        """
        try:
            return {
                CATEGORY_TABLE: SupabaseClient.fetch_many(
                    CATEGORY_TABLE,
                    filters={"business_id": business_id},
                    columns=_CATEGORY_COLUMNS,
                ),
                SUBCATEGORY_TABLE: SupabaseClient.fetch_many(
                    SUBCATEGORY_TABLE,
                    filters={"business_id": business_id},
                    columns=_SUBCATEGORY_COLUMNS,
                ),
            }
        except Exception as e:
            raise DatabaseError("read current service categories", str(e))

    @staticmethod
    def _restore(business_id: str, snapshot: dict[str, list[dict[str, Any]]]) -> None:
        """Put the snapshot back. Failures are logged, the original error wins."""
        client = SupabaseClient.get_client()

        # Subcategory rows reference category rows: clear them first, insert them last
        for table in (SUBCATEGORY_TABLE, CATEGORY_TABLE):
            try:
                client.table(table).delete().eq("business_id", business_id).execute()
            except Exception as e:
                logger.warning(f"Restore: could not clear {table} for {business_id}: {e}")

        for table in (CATEGORY_TABLE, SUBCATEGORY_TABLE):
            rows = snapshot.get(table) or []
            if not rows:
                continue
            try:
                client.table(table).insert(rows).execute()
                logger.info(f"Restored {len(rows)} rows in {table} for business {business_id}")
            except Exception as e:
                logger.error(f"Restore of {table} failed for business {business_id}: {e}")
