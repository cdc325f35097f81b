from functools import lru_cache

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth_utils import read_session_token, reissue_session_token
from app.core.context import set_user_id
from app.core.exceptions import AdminForbidden, Unauthorized
from app.core.logging import audit
from app.core.settings import settings
from app.db.session import get_db
from app.schemas.auth import SessionValidationResult
from app.services.admin import AdminService
from app.services.auth import AuthService
from app.services.email import EmailService
from app.services.oauth import GitHubOAuthClient
from app.services.onboarding import OnboardingService

ADMIN_ROLES = frozenset({"ADMIN", "SUPPORT"})


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


def get_auth_service(db: AsyncSession = Depends(get_db_session)) -> AuthService:
    return AuthService(db, settings=settings)


def get_onboarding_service(db: AsyncSession = Depends(get_db_session)) -> OnboardingService:
    return OnboardingService(db, settings=settings)


def get_admin_service(db: AsyncSession = Depends(get_db_session)) -> AdminService:
    return AdminService(db)


@lru_cache(maxsize=1)
def get_email_service() -> EmailService:
    return EmailService(settings)


def get_github_client() -> GitHubOAuthClient:
    return GitHubOAuthClient(settings)


async def get_current_session(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionValidationResult:
    token = read_session_token(request)
    if not token:
        raise Unauthorized()

    result = await auth_service.validate_session(token)
    if result.session is None or result.user is None:
        raise Unauthorized()
    if result.new_token:
        reissue_session_token(request, response, result.new_token)

    set_user_id(result.user.id)
    if result.session.impersonator_user_id is not None:
        audit(
            "admin.impersonation.request",
            impersonator_user_id=result.session.impersonator_user_id,
            impersonated_user_id=result.user.id,
            session_id=result.session.id,
            method=request.method,
            path=request.url.path,
        )
    return result


async def require_admin(
    current: SessionValidationResult = Depends(get_current_session),
) -> SessionValidationResult:
    if current.user.role not in ADMIN_ROLES:
        raise AdminForbidden()
    return current
