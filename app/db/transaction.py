from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything executed inside the block, or roll it all back."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
