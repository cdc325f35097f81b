import asyncio
import logging

from app.core.security import get_password_hash
from app.core.settings import Settings, settings as default_settings
from app.db.session import AsyncSessionLocal
from app.db.transaction import atomic
from app.repositories import AuthRepository

logger = logging.getLogger(__name__)

SEED_ADMIN_ROLE = "ADMIN"


async def seed_admin(repository: AuthRepository, settings: Settings) -> bool:
    """Create the seed ADMIN user. Returns ``True`` when a row was inserted."""
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return False
    if await repository.find_user_by_email(settings.seed_admin_email) is not None:
        logger.info("Seed admin user already exists")
        return False
    await repository.create_user(
        email=settings.seed_admin_email,
        username=settings.seed_admin_username,
        password_hash=get_password_hash(settings.seed_admin_password),
        email_verified=True,
        role=SEED_ADMIN_ROLE,
    )
    logger.info("Seed admin user created")
    return True


async def init_db(settings: Settings = default_settings) -> None:
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return
    async with AsyncSessionLocal() as session:
        async with atomic(session):
            await seed_admin(AuthRepository(session), settings)


if __name__ == "__main__":
    asyncio.run(init_db())
