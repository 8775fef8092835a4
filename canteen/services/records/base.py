"""
Record Store Abstract Base Class

Defines the interface contract for the data-service boundary. The storefront
never filters, sorts or assigns ids itself; every read and write is handed
to a record store:

    - InMemoryRecordStore: development and tests
    - SqlRecordStore: PostgreSQL through SQLAlchemy (staging/production)

Design Pattern: Strategy Pattern
    - Store selected at runtime from ENV_MODE
    - Services depend only on this interface

Records are plain dictionaries keyed by column name, matching the rows the
hosted database returns.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# Table names
MENU_ITEMS = "menu_items"
ORDERS = "orders"
ORDER_ITEMS = "order_items"

Record = dict[str, Any]


class RecordStoreError(Exception):
    """
    Raised when the record store cannot complete a request.

    Attributes:
        message: Human-readable description, safe to show to the user
        code: Machine-readable error code
    """

    def __init__(self, message: str, code: str = "store_error"):
        super().__init__(message)
        self.message = message
        self.code = code


class BaseRecordStore(ABC):
    """
    Abstract base class for record stores.

    Example:
        >>> store = get_record_store()
        >>> rows = await store.query(
        ...     "menu_items",
        ...     filters={"type": "veg", "is_available": True},
        ...     order_by="name",
        ... )
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the store provider.

        Returns:
            str: Provider name (e.g., "memory", "sql")
        """
        pass

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Optional[Record] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        """
        Return all records of a table matching every equality filter.

        Args:
            table: Table name
            filters: Column -> value equality filters (AND-ed)
            order_by: Column to order by
            descending: Reverse the ordering

        Returns:
            list[Record]: Matching records, ordered

        Raises:
            RecordStoreError: If the query fails
        """
        pass

    @abstractmethod
    async def insert(self, table: str, record: Record) -> Record:
        """
        Insert one record.

        Returns:
            Record: The created record including server-assigned fields
            (id, defaults, created_at)

        Raises:
            RecordStoreError: If the insert fails
        """
        pass

    @abstractmethod
    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        """
        Insert several records in one request. Either all are created or
        none are.

        Raises:
            RecordStoreError: If the insert fails
        """
        pass

    @abstractmethod
    async def delete(self, table: str, filters: Record) -> int:
        """
        Delete records matching every equality filter.

        Returns:
            int: Number of deleted records

        Raises:
            RecordStoreError: If the delete fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the store.

        Returns:
            bool: True if the store is reachable
        """
        pass
