"""
Catalog reader.

One record-store query per menu view. Failures are reported in the
result with a generic message; there is no retry and no caching.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from canteen.models import ItemType
from canteen.schemas import MenuItemRecord
from canteen.services.records import BaseRecordStore, RecordStoreError, MENU_ITEMS

logger = logging.getLogger(__name__)

MENU_LOAD_ERROR = "Failed to load menu items"
OFFERS_LOAD_ERROR = "Failed to load offers"
COMBOS_LOAD_ERROR = "Failed to load combo items"


@dataclass
class CatalogResult:
    """
    Result of a catalog read.

    Attributes:
        success: Whether the query succeeded
        items: Validated menu items, in the order the store returned them
        error_message: Generic message to show the user on failure
        skipped: Number of rows rejected by validation
    """
    success: bool
    items: list[MenuItemRecord] = field(default_factory=list)
    error_message: Optional[str] = None
    skipped: int = 0

    def by_type(self, item_type: ItemType) -> list[MenuItemRecord]:
        return [item for item in self.items if item.type == item_type]


class CatalogReader:
    """
    Reads menu views from the record store.

    Example:
        >>> reader = CatalogReader(get_record_store())
        >>> result = await reader.list_offers()
        >>> if result.success:
        ...     print([item.name for item in result.items])
    """

    def __init__(self, store: BaseRecordStore):
        self.store = store

    async def _fetch(
        self,
        filters: dict[str, Any],
        order_by: str,
        error_message: str,
        descending: bool = False,
    ) -> CatalogResult:
        try:
            rows = await self.store.query(
                MENU_ITEMS,
                filters=filters,
                order_by=order_by,
                descending=descending,
            )
        except RecordStoreError as e:
            logger.error(f"Catalog: query {filters} failed - {e.message}")
            return CatalogResult(success=False, error_message=error_message)

        items = []
        skipped = 0
        for row in rows:
            try:
                items.append(MenuItemRecord.model_validate(row))
            except ValidationError as e:
                skipped += 1
                logger.warning(
                    f"Catalog: skipping invalid menu item {row.get('id')!r} - "
                    f"{e.error_count()} validation error(s)"
                )

        return CatalogResult(success=True, items=items, skipped=skipped)

    async def list_menu(self) -> CatalogResult:
        """All available items ordered by name."""
        return await self._fetch(
            {"is_available": True},
            order_by="name",
            error_message=MENU_LOAD_ERROR,
        )

    async def list_category(self, item_type: ItemType) -> CatalogResult:
        """Available items of one category; combos by price, others by name."""
        if item_type == ItemType.COMBO:
            return await self.list_combos()

        return await self._fetch(
            {"type": item_type.value, "is_available": True},
            order_by="name",
            error_message=MENU_LOAD_ERROR,
        )

    async def list_combos(self) -> CatalogResult:
        return await self._fetch(
            {"type": ItemType.COMBO.value, "is_available": True},
            order_by="price",
            error_message=COMBOS_LOAD_ERROR,
        )

    async def list_offers(self) -> CatalogResult:
        """Available special offers, biggest discount first."""
        return await self._fetch(
            {"is_special_offer": True, "is_available": True},
            order_by="discount_percentage",
            descending=True,
            error_message=OFFERS_LOAD_ERROR,
        )

    async def get_item(self, item_id: str) -> CatalogResult:
        """Look up one available item; ``items`` is empty if it does not exist."""
        return await self._fetch(
            {"id": item_id, "is_available": True},
            order_by="name",
            error_message=MENU_LOAD_ERROR,
        )
