"""
Storage adapter interface for the orders dashboard.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional, Sequence, Tuple

from models import ArtStatus, Order


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    Routers and core helpers only talk to this interface, so the SQLAlchemy
    backend can point at SQLite or Postgres without code changes.

    Missing orders are reported with ValueError("ORDER_NOT_FOUND").
    """

    def ping(self) -> None:
        """Raise if the database cannot be reached."""
        ...

    # ========== Reads ==========

    def list_orders(
        self,
        status: Optional[ArtStatus] = None,
        search: Optional[str] = None,
        statuses: Optional[Sequence[ArtStatus]] = None,
        in_daily_queue: Optional[bool] = None,
    ) -> List[Order]:
        """
        List orders ordered by shipping date (earliest first).

        Args:
            status: only this art status
            search: case-insensitive substring over customer user/name,
                marketplace id, product name and art name
            statuses: only these art statuses
            in_daily_queue: filter on the daily-queue flag
        """
        ...

    def get_order(self, order_id: str) -> Optional[Order]:
        """Fetch one order, or None."""
        ...

    def get_orders(self, order_ids: Sequence[str]) -> List[Order]:
        """Fetch the orders that exist among `order_ids` (unknown ids are skipped)."""
        ...

    def list_orders_missing_cup_info(self) -> List[Order]:
        """Orders without cup_quantity or real_description."""
        ...

    def list_orders_by_asset(
        self,
        field: str,
        has_asset: bool,
        statuses: Optional[Sequence[ArtStatus]] = None,
    ) -> List[Order]:
        """
        Orders with an art name whose `field` (art_png_url / art_cdr_url) is
        set (has_asset=True) or empty, optionally limited to `statuses`.
        """
        ...

    # ========== Writes ==========

    def update_order(self, order_id: str, updates: Dict[str, Any]) -> Order:
        """
        Overwrite only the provided keys and bump updated_at.

        Raises:
            ValueError("ORDER_NOT_FOUND")
        """
        ...

    def update_status_batch(self, order_ids: Sequence[str], art_status: ArtStatus) -> List[Order]:
        """
        Set the same status on every id in one transaction. Entering PRODUCTION
        stamps sent_to_production_at. Any unknown id aborts the whole batch.
        """
        ...

    def delete_order(self, order_id: str) -> None:
        ...

    # ========== Import ==========

    def upsert_orders(self, rows: List[Dict[str, Any]]) -> Tuple[int, int]:
        """
        Insert or update by marketplace_order_id in one transaction.
        Workflow fields of existing orders are left alone.

        Returns:
            (created, updated)
        """
        ...

    def mark_missing_as_shipped(self, imported_marketplace_ids: Sequence[str]) -> int:
        """
        Orders in PRODUCTION whose marketplace id is not in the import become
        SHIPPED (shipped_at set, removed from the daily queue).

        Returns:
            number of orders shipped
        """
        ...

    # ========== Daily queue ==========

    def replace_daily_queue(self, order_ids: Sequence[str]) -> int:
        """Clear the current queue and flag exactly `order_ids`, atomically."""
        ...

    def clear_daily_queue(self) -> int:
        ...
