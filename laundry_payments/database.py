"""Database engine and session management."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from laundry_payments.config import settings
from laundry_payments.models.records import Base

engine = create_async_engine(settings.database_url, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: Optional[AsyncEngine] = None):
    """Create all tables. Safe to call multiple times (CREATE IF NOT EXISTS)."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
