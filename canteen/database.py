"""
Database Connection Module
Handles the PostgreSQL connection using the SQLAlchemy async engine.
Used by the SQL record store in staging/production.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from canteen.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,  # Connection pool size
    max_overflow=10  # Extra connections when pool is full
)

# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def init_db(
    bind: Optional[AsyncEngine] = None,
    seed: bool = False,
) -> None:
    """
    Create all tables and optionally seed the sample menu.
    Called once at application startup when the SQL store is active.

    Args:
        bind: Engine to use (defaults to the application engine)
        seed: Insert the sample menu if the menu table is empty
    """
    # Register tables on Base.metadata
    from canteen import models
    from canteen.services.records.seed import MENU_SEED

    target = bind or engine

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    if not seed:
        return

    session_maker = async_sessionmaker(bind=target, expire_on_commit=False)
    async with session_maker() as session:
        count = (await session.execute(select(func.count(models.MenuItem.id)))).scalar() or 0
        if count:
            logger.debug(f"Menu already has {count} items, skipping seed")
            return
        session.add_all(models.MenuItem(**row) for row in MENU_SEED)
        await session.commit()
    logger.info(f"Seeded {len(MENU_SEED)} menu items")
