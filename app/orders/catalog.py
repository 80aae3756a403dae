"""Read-only catalog lookups used while placing and authorizing orders"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.store import MenuItem, Store


@dataclass(frozen=True)
class CatalogStore:
    id: UUID
    name: str
    owner_id: UUID
    is_active: bool
    minimum_order: Decimal
    delivery_fee: Decimal
    estimated_delivery_time: int  # minutes


@dataclass(frozen=True)
class CatalogMenuItem:
    id: UUID
    store_id: UUID
    name: str
    price: Decimal
    is_available: bool


class CatalogReader:
    """Store and menu facts as of now"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_store(self, store_id: UUID) -> Optional[CatalogStore]:
        async with self.session_factory() as db:
            result = await db.execute(select(Store).where(Store.id == store_id))
            store = result.scalar_one_or_none()

        if store is None:
            return None

        return CatalogStore(
            id=store.id,
            name=store.name,
            owner_id=store.owner_id,
            is_active=bool(store.is_active),
            minimum_order=store.minimum_order,
            delivery_fee=store.delivery_fee,
            estimated_delivery_time=store.estimated_delivery_time,
        )

    async def get_menu_item(self, menu_item_id: UUID) -> Optional[CatalogMenuItem]:
        items = await self.get_menu_items([menu_item_id])
        return items.get(menu_item_id)

    async def get_menu_items(self, menu_item_ids: Iterable[UUID]) -> Dict[UUID, CatalogMenuItem]:
        """Look up several items at once; missing ids are absent from the result"""
        ids = list(menu_item_ids)
        if not ids:
            return {}

        async with self.session_factory() as db:
            result = await db.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
            items = result.scalars().all()

        return {
            item.id: CatalogMenuItem(
                id=item.id,
                store_id=item.store_id,
                name=item.name,
                price=item.price,
                is_available=bool(item.is_available),
            )
            for item in items
        }

    async def is_store_owner(self, store_id: UUID, user_id: UUID) -> bool:
        store = await self.get_store(store_id)
        return store is not None and store.owner_id == user_id
