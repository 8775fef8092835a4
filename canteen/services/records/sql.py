"""
SQL Record Store Implementation

Production implementation backed by PostgreSQL through the SQLAlchemy
async engine. Used when ENV_MODE=production or ENV_MODE=staging.

Each call opens its own session; batch inserts commit in one transaction
so a multi-row insert is all-or-nothing.

Version: 1.0.0
"""

import enum
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Enum as SAEnum, delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from canteen.database import Base
from canteen.models import MenuItem, Order, OrderItem
from canteen.services.records.base import (
    BaseRecordStore,
    Record,
    RecordStoreError,
    MENU_ITEMS,
    ORDERS,
    ORDER_ITEMS,
)

logger = logging.getLogger(__name__)


class SqlRecordStore(BaseRecordStore):
    """
    Record store over the application's SQLAlchemy models.

    Example:
        >>> store = SqlRecordStore()
        >>> order = await store.insert("orders", {"user_id": uid, ...})
        >>> print(order["id"])
    """

    MODELS: dict[str, type[Base]] = {
        MENU_ITEMS: MenuItem,
        ORDERS: Order,
        ORDER_ITEMS: OrderItem,
    }

    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Initialize the SQL store.

        Args:
            session_maker: Session factory (defaults to the application's)
        """
        if session_maker is None:
            from canteen.database import async_session_maker
            session_maker = async_session_maker

        self._session_maker = session_maker
        logger.info("SqlRecordStore initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sql"

    # =========================================================================
    # CONVERSION HELPERS
    # =========================================================================

    def _model(self, table: str) -> type[Base]:
        try:
            return self.MODELS[table]
        except KeyError:
            raise RecordStoreError(
                f'relation "{table}" does not exist',
                code="unknown_table",
            )

    @staticmethod
    def _column(model: type[Base], name: str):
        column = model.__table__.columns.get(name)
        if column is None:
            raise RecordStoreError(
                f'column "{name}" does not exist on "{model.__tablename__}"',
                code="unknown_column",
            )
        return column

    def _coerce(self, model: type[Base], record: Record) -> Record:
        """Turn enum strings into enum members for Enum columns."""
        values = {}
        for key, value in record.items():
            column = self._column(model, key)
            enum_class = getattr(column.type, "enum_class", None)
            if isinstance(column.type, SAEnum) and enum_class and value is not None:
                try:
                    value = enum_class(value)
                except ValueError:
                    raise RecordStoreError(
                        f'invalid input value for enum {column.type.name}: "{value}"',
                        code="invalid_value",
                    )
            values[key] = value
        return values

    @staticmethod
    def _to_record(instance: Base) -> Record:
        record: dict[str, Any] = {}
        for column in instance.__table__.columns:
            value = getattr(instance, column.key)
            if isinstance(value, enum.Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            record[column.key] = value
        return record

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
        model = self._model(table)
        statement = select(model)

        for key, value in self._coerce(model, filters or {}).items():
            statement = statement.where(self._column(model, key) == value)

        if order_by:
            column = self._column(model, order_by)
            statement = statement.order_by(column.desc() if descending else column.asc())

        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                return [self._to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"SQL: query on {table} failed - {e}")
            raise RecordStoreError(f"Query on {table} failed", code="query_failed") from e

    async def insert(self, table: str, record: Record) -> Record:
        created = await self.insert_many(table, [record])
        return created[0]

    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        model = self._model(table)
        instances = [model(**self._coerce(model, record)) for record in records]

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    session.add_all(instances)
                # Load server defaults (created_at)
                for instance in instances:
                    await session.refresh(instance)
                created = [self._to_record(instance) for instance in instances]
        except IntegrityError as e:
            logger.error(f"SQL: insert into {table} violated a constraint - {e.orig}")
            raise RecordStoreError(
                f"Insert into {table} violates a constraint",
                code="constraint_violation",
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"SQL: insert into {table} failed - {e}")
            raise RecordStoreError(f"Insert into {table} failed", code="insert_failed") from e

        logger.debug(f"SQL: inserted {len(created)} row(s) into {table}")
        return created

    async def delete(self, table: str, filters: Record) -> int:
        model = self._model(table)
        statement = delete(model)
        for key, value in self._coerce(model, filters).items():
            statement = statement.where(self._column(model, key) == value)

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    if model is Order:
                        # Not every backend enforces ON DELETE CASCADE
                        order_ids = select(Order.id)
                        for key, value in self._coerce(model, filters).items():
                            order_ids = order_ids.where(self._column(model, key) == value)
                        await session.execute(
                            delete(OrderItem).where(OrderItem.order_id.in_(order_ids))
                        )
                    result = await session.execute(statement)
                    deleted = result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"SQL: delete from {table} failed - {e}")
            raise RecordStoreError(f"Delete from {table} failed", code="delete_failed") from e

        logger.debug(f"SQL: deleted {deleted} row(s) from {table}")
        return deleted

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"SQL: health check failed - {e}")
            return False
