# One-off maintenance script: fill cup_quantity / real_description on stored
# orders from the product mapping table. Safe to re-run.
from __future__ import annotations

import logging

from adapters.sqlite import SqliteAdapter
from core.product_mapping import backfill_orders
from settings import get_settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    settings = get_settings()
    storage = SqliteAdapter.from_url(settings.db_url)

    updated, not_mapped = backfill_orders(storage)

    logger.info(f"Backfill done: {updated} updated, {not_mapped} not mapped")
    if not_mapped:
        logger.info("Add the missing products to core/product_mapping.py and run again.")


if __name__ == "__main__":
    main()
