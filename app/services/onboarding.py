import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import tokens
from app.core.exceptions import AppError, InvalidCredentials, SignUpFailed
from app.core.logging import audit
from app.core.security import get_password_hash
from app.core.settings import Settings, settings as default_settings
from app.db.transaction import atomic
from app.repositories import AuthRepository, OrganizationRepository
from app.schemas.onboarding import SignUpResult
from app.services.auth import DEFAULT_ROLE, OWNER_ROLE, default_org_name, utcnow
from app.services.password_policy import PasswordPolicy

logger = logging.getLogger(__name__)


class OnboardingService:
    """Email/password sign-up: a user, their first organization and its owner membership."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        repository: AuthRepository | None = None,
        organization_repository: OrganizationRepository | None = None,
        password_policy: PasswordPolicy | None = None,
        settings: Settings = default_settings,
    ) -> None:
        self.db = db
        self.repository = repository or AuthRepository(db)
        self.organization_repository = organization_repository or OrganizationRepository(db)
        self.password_policy = password_policy or PasswordPolicy(settings)
        self.email_verification_ttl = timedelta(hours=settings.email_verification_ttl_hours)

    async def sign_up_and_create_organization(
        self,
        email: str,
        password: str,
        username: str,
        org_name: Optional[str] = None,
    ) -> SignUpResult:
        # Checked before the transaction opens; the breach lookup is a network call.
        await self.password_policy.enforce(password)
        if await self.repository.find_user_by_email(email) is not None:
            raise InvalidCredentials()

        password_hash = get_password_hash(password)
        verification_token = tokens.generate_email_verification_token()

        try:
            async with atomic(self.db):
                user = await self.repository.create_user(
                    email=email,
                    username=username,
                    password_hash=password_hash,
                    email_verified=False,
                    role=DEFAULT_ROLE,
                )
                org = await self.organization_repository.create_organization(
                    name=org_name or default_org_name(username)
                )
                await self.organization_repository.create_membership(
                    organization_id=org.id,
                    user_id=user.id,
                    role=OWNER_ROLE,
                    is_default=True,
                )
                await self.repository.create_email_verification(
                    user_id=user.id,
                    identifier=email,
                    value=tokens.hash_email_verification_token(verification_token),
                    expires_at=utcnow() + self.email_verification_ttl,
                )
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Sign-up transaction failed")
            raise SignUpFailed() from exc

        audit("auth.sign_up", user_id=user.id, organization_id=org.id)
        return SignUpResult(user=user, organization_id=org.id, verification_token=verification_token)
