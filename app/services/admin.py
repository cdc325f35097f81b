import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CannotImpersonateSelf,
    ImpersonationFailed,
    NotImpersonating,
    SessionNotFound,
    UserNotFound,
)
from app.core.logging import audit
from app.db.transaction import atomic
from app.repositories import AuthRepository

logger = logging.getLogger(__name__)


class AdminService:
    """Session impersonation.

    Who may call these is decided by the router dependency; this service
    only swaps ``user_id`` and ``impersonator_user_id`` on one session row.
    """

    def __init__(self, db: AsyncSession, *, repository: AuthRepository | None = None) -> None:
        self.db = db
        self.repository = repository or AuthRepository(db)

    async def start_impersonation(self, session_id: str, admin_user_id: int, target_user_id: int) -> None:
        if admin_user_id == target_user_id:
            raise CannotImpersonateSelf()
        target = await self.repository.find_user_by_id(target_user_id)
        if target is None:
            raise UserNotFound("Target user not found")

        async with atomic(self.db):
            updated = await self.repository.update_session_impersonation(
                session_id, user_id=target_user_id, impersonator_user_id=admin_user_id
            )
        if not updated:
            logger.error("Impersonation start affected no rows for session owned by admin %s", admin_user_id)
            raise ImpersonationFailed()
        audit("admin.impersonation.start", admin_user_id=admin_user_id, target_user_id=target_user_id)

    async def stop_impersonation(self, session_id: str, admin_user_id: int) -> None:
        async with atomic(self.db):
            updated = await self.repository.update_session_impersonation(
                session_id, user_id=admin_user_id, impersonator_user_id=None
            )
        if not updated:
            logger.error("Impersonation stop affected no rows for admin %s", admin_user_id)
            raise ImpersonationFailed()
        audit("admin.impersonation.stop", admin_user_id=admin_user_id)

    async def stop_impersonation_for_session(self, session_id: str) -> int:
        """Resolve the impersonator from the session row, then restore them."""
        session = await self.repository.find_session_by_id(session_id)
        if session is None:
            raise SessionNotFound()
        if session.impersonator_user_id is None:
            raise NotImpersonating()
        await self.stop_impersonation(session_id, session.impersonator_user_id)
        return session.impersonator_user_id
