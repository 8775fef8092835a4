"""
Record Store Factory

Provides a single entry point for obtaining the record store.

Usage:
    from canteen.services.records import get_record_store

    # Returns InMemoryRecordStore or SqlRecordStore based on ENV_MODE
    store = get_record_store()
    rows = await store.query("menu_items", {"is_available": True}, order_by="name")

Environment Switching:
    - ENV_MODE=development → InMemoryRecordStore (sample menu, no database)
    - ENV_MODE=staging → SqlRecordStore
    - ENV_MODE=production → SqlRecordStore
"""

import logging
from functools import lru_cache

from canteen.core.config import get_settings
from canteen.services.records.base import (
    BaseRecordStore,
    Record,
    RecordStoreError,
    MENU_ITEMS,
    ORDERS,
    ORDER_ITEMS,
)
from canteen.services.records.mock import InMemoryRecordStore
from canteen.services.records.seed import MENU_SEED

logger = logging.getLogger(__name__)


@lru_cache()
def get_record_store() -> BaseRecordStore:
    """
    Get the configured record store instance.

    The instance is cached so the in-memory store keeps its data for the
    life of the process.

    Returns:
        BaseRecordStore: Configured record store
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Record Store: Using InMemoryRecordStore (development mode)")
        return InMemoryRecordStore(
            seed=MENU_SEED if settings.seed_menu else None,
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    from canteen.services.records.sql import SqlRecordStore

    logger.info(
        f"Record Store: Using SqlRecordStore "
        f"({settings.env_mode.value} mode)"
    )
    return SqlRecordStore()


def reset_record_store() -> None:
    """
    Clear the cached record store instance.

    The next call to get_record_store() will create a new instance.
    """
    get_record_store.cache_clear()
    logger.debug("Record store cache cleared")


__all__ = [
    "get_record_store",
    "reset_record_store",
    "BaseRecordStore",
    "Record",
    "RecordStoreError",
    "InMemoryRecordStore",
    "MENU_ITEMS",
    "ORDERS",
    "ORDER_ITEMS",
]
