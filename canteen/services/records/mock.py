"""
In-Memory Record Store Implementation

Simulates the hosted database without any network or disk access.
Used in development mode (ENV_MODE=development) and in tests to:
    - Browse the sample menu and place orders locally
    - Exercise failure handling with simulated outages
    - Run the shopper simulation without a database

Behavior:
    - Assigns UUID ids and ISO-8601 created_at timestamps
    - Applies the same column defaults as the SQL schema
    - Enforces the order_items -> orders reference and cascades deletes
    - Optionally fails a configurable share of requests
"""

import asyncio
import copy
import random
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from canteen.services.records.base import (
    BaseRecordStore,
    Record,
    RecordStoreError,
    MENU_ITEMS,
    ORDERS,
    ORDER_ITEMS,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(BaseRecordStore):
    """
    Dictionary-backed record store.

    Attributes:
        failure_rate: Probability of a simulated failure per request (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> store = InMemoryRecordStore(seed=MENU_SEED)
        >>> rows = await store.query("menu_items", {"type": "combo"}, order_by="price")
    """

    # Column defaults applied on insert, mirroring the SQL schema
    DEFAULTS: dict[str, dict[str, Any]] = {
        MENU_ITEMS: {
            "description": None,
            "image_url": None,
            "is_available": True,
            "is_special_offer": False,
            "discount_percentage": 0.0,
        },
        ORDERS: {
            "payment_status": "pending",
            "order_status": "pending",
            "estimated_wait_time": None,
        },
        ORDER_ITEMS: {},
    }

    def __init__(
        self,
        seed: Optional[Iterable[Record]] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        """
        Initialize the in-memory store.

        Args:
            seed: Menu records to preload into menu_items
            failure_rate: Probability of a simulated failure
            min_latency: Minimum response time in seconds
            max_latency: Maximum response time in seconds
        """
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self._tables: dict[str, list[Record]] = {name: [] for name in self.DEFAULTS}

        for row in seed or ():
            self._tables[MENU_ITEMS].append(self._with_defaults(MENU_ITEMS, row))

        logger.info(
            f"InMemoryRecordStore initialized "
            f"({len(self._tables[MENU_ITEMS])} menu items, "
            f"failure_rate={failure_rate:.0%})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "memory"

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _maybe_fail(self, operation: str, table: str) -> None:
        if random.random() < self.failure_rate:
            logger.debug(f"Memory: simulated failure on {operation} {table}")
            raise RecordStoreError(
                "The service is temporarily unavailable. Please try again.",
                code="unavailable",
            )

    def _table(self, table: str) -> list[Record]:
        try:
            return self._tables[table]
        except KeyError:
            raise RecordStoreError(
                f'relation "{table}" does not exist',
                code="unknown_table",
            )

    def _with_defaults(self, table: str, record: Record) -> Record:
        row = {**self.DEFAULTS[table], **copy.deepcopy(record)}
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        return row

    def _check_references(self, table: str, record: Record) -> None:
        if table != ORDER_ITEMS:
            return
        order_ids = {row["id"] for row in self._tables[ORDERS]}
        if record.get("order_id") not in order_ids:
            raise RecordStoreError(
                'insert or update on table "order_items" violates foreign key constraint',
                code="foreign_key_violation",
            )

    @staticmethod
    def _matches(row: Record, filters: Record) -> bool:
        return all(row.get(key) == value for key, value in filters.items())

    # =========================================================================
    # RECORD STORE INTERFACE
    # =========================================================================

    async def query(
        self,
        table: str,
        filters: Optional[Record] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        await self._simulate_latency()
        self._maybe_fail("query", table)

        rows = [row for row in self._table(table) if self._matches(row, filters or {})]
        if order_by:
            # NULLs sort last in both directions, as in PostgreSQL's default for ASC
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=descending)
            rows = present + missing

        return [copy.deepcopy(row) for row in rows]

    async def insert(self, table: str, record: Record) -> Record:
        created = await self.insert_many(table, [record])
        return created[0]

    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        await self._simulate_latency()
        self._maybe_fail("insert", table)

        rows = self._table(table)
        prepared = [self._with_defaults(table, record) for record in records]
        for row in prepared:
            self._check_references(table, row)

        rows.extend(prepared)
        logger.debug(f"Memory: inserted {len(prepared)} row(s) into {table}")
        return [copy.deepcopy(row) for row in prepared]

    async def delete(self, table: str, filters: Record) -> int:
        await self._simulate_latency()
        self._maybe_fail("delete", table)

        rows = self._table(table)
        doomed = [row for row in rows if self._matches(row, filters)]
        self._tables[table] = [row for row in rows if not self._matches(row, filters)]

        if table == ORDERS and doomed:
            doomed_ids = {row["id"] for row in doomed}
            self._tables[ORDER_ITEMS] = [
                item for item in self._tables[ORDER_ITEMS]
                if item.get("order_id") not in doomed_ids
            ]

        logger.debug(f"Memory: deleted {len(doomed)} row(s) from {table}")
        return len(doomed)

    async def health_check(self) -> bool:
        """The in-memory store is always reachable."""
        return True
