"""Session and credential lifecycle.

Sessions are addressed by ``sha256(token)``; the plaintext token only ever
lives with the client. ``validate_session`` rotates both the token and the
row id once a session enters its renewal window, so continued use never
expires a login but a leaked token stops working after the next rotation.

One-time credentials (password reset tokens, OTP codes, email verification
tokens) follow a purge-then-issue pattern: every new issue deletes the
user's previous ones first, and expired rows are deleted lazily when they
are presented.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import tokens
from app.core.exceptions import (
    AppError,
    EmailNotVerified,
    EmailVerificationFailed,
    ExpiredOtp,
    ExpiredPasswordResetToken,
    ExpiredVerificationToken,
    InvalidCredentials,
    InvalidOtp,
    InvalidPasswordResetToken,
    InvalidVerificationToken,
    OAuthEmailRequired,
    OAuthLinkFailed,
    OAuthRefetchFailed,
    PasswordResetFailed,
)
from app.core.logging import audit
from app.core.security import constant_time_verify, get_password_hash
from app.core.settings import Settings, settings as default_settings
from app.db.transaction import atomic
from app.repositories import AuthRepository, OrganizationRepository
from app.schemas.auth import (
    OAuthUserDetails,
    SessionOut,
    SessionValidationResult,
    SignInResult,
    UserOut,
    VerificationResend,
)
from app.services.password_policy import PasswordPolicy

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "USER"
OWNER_ROLE = "owner"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_org_name(username: str) -> str:
    return f"{username}'s org"


class AuthService:
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
        self.session_duration = timedelta(days=settings.session_duration_days)
        self.renewal_threshold = timedelta(days=settings.session_renewal_threshold_days)
        self.password_reset_ttl = timedelta(minutes=settings.password_reset_ttl_minutes)
        self.otp_ttl = timedelta(minutes=settings.otp_ttl_minutes)
        self.email_verification_ttl = timedelta(hours=settings.email_verification_ttl_hours)

    # --- lookups --------------------------------------------------------------

    async def find_user_by_id(self, user_id: int) -> Optional[UserOut]:
        return await self.repository.find_user_by_id(user_id)

    async def find_session_by_id(self, session_id: str) -> Optional[SessionOut]:
        return await self.repository.find_session_by_id(session_id)

    # --- sessions -------------------------------------------------------------

    async def _issue_session(self, user_id: int) -> tuple[SessionOut, str]:
        token = tokens.generate_session_token()
        session = await self.repository.create_session(
            session_id=tokens.generate_session_id(token),
            user_id=user_id,
            expires_at=utcnow() + self.session_duration,
        )
        return session, token

    async def create_session(self, user_id: int) -> tuple[SessionOut, str]:
        async with atomic(self.db):
            return await self._issue_session(user_id)

    async def validate_session(self, token: str) -> SessionValidationResult:
        """Resolve a bearer token to its session and user.

        An unknown or expired token yields an empty result rather than an
        error; callers treat that as anonymous. Inside the renewal window the
        session is rotated and the new plaintext token is returned in
        ``new_token`` so the caller can re-issue its cookie.
        """
        session_id = tokens.generate_session_id(token)
        found = await self.repository.find_session_with_user(session_id)
        if found is None:
            return SessionValidationResult()

        session = found.session
        now = utcnow()

        if now >= session.expires_at:
            async with atomic(self.db):
                await self.repository.delete_session(session.id)
            return SessionValidationResult()

        if now >= session.expires_at - self.renewal_threshold:
            new_token = tokens.generate_session_token()
            new_session_id = tokens.generate_session_id(new_token)
            expires_at = now + self.session_duration
            async with atomic(self.db):
                updated = await self.repository.update_session_id_and_expiry(
                    session.id, new_session_id=new_session_id, expires_at=expires_at
                )
            if not updated:
                return SessionValidationResult()
            renewed = session.model_copy(update={"id": new_session_id, "expires_at": expires_at})
            return SessionValidationResult(session=renewed, user=found.user, new_token=new_token)

        return SessionValidationResult(session=session, user=found.user)

    async def invalidate_session(self, token: str) -> None:
        async with atomic(self.db):
            await self.repository.delete_session(tokens.generate_session_id(token))

    async def invalidate_all_sessions(self, user_id: int) -> None:
        async with atomic(self.db):
            await self.repository.delete_all_user_sessions(user_id)

    # --- password sign-in -----------------------------------------------------

    async def sign_in_with_email(self, email: str, password: str) -> SignInResult:
        user = await self.repository.find_user_with_password_by_email(email)
        if user is None:
            constant_time_verify(None, password)
            raise InvalidCredentials()
        if not user.email_verified:
            raise EmailNotVerified()
        if not constant_time_verify(user.password_hash, password):
            raise InvalidCredentials()

        _session, token = await self.create_session(user.id)
        audit("auth.sign_in", user_id=user.id, method="password")
        return SignInResult(user=user.without_password(), session_token=token)

    # --- password reset -------------------------------------------------------

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token, or return ``None`` for an unknown address."""
        user = await self.repository.find_user_by_email(email)
        if user is None:
            return None

        token = tokens.generate_password_reset_token()
        async with atomic(self.db):
            await self.repository.delete_password_reset_tokens_by_user_id(user.id)
            await self.repository.create_password_reset_token(
                user_id=user.id,
                hashed_token=tokens.hash_password_reset_token(token),
                expires_at=utcnow() + self.password_reset_ttl,
            )
        return token

    async def reset_password(self, token: str, new_password: str) -> None:
        # Network-bound breach check; no transaction may be open yet.
        await self.password_policy.enforce(new_password)

        record = await self.repository.find_password_reset_token_by_hashed_token(
            tokens.hash_password_reset_token(token)
        )
        if record is None:
            raise InvalidPasswordResetToken()
        if utcnow() >= record.expires_at:
            async with atomic(self.db):
                await self.repository.delete_password_reset_token(record.id)
            raise ExpiredPasswordResetToken()

        password_hash = get_password_hash(new_password)

        try:
            async with atomic(self.db):
                await self.repository.update_user_password(record.user_id, password_hash)
                # Completing a reset proves control of the mailbox.
                await self.repository.update_user_email_verified(record.user_id, True)
                await self.repository.delete_password_reset_token(record.id)
                await self.repository.delete_all_user_sessions(record.user_id)
        except Exception as exc:
            logger.exception("Password reset transaction failed for user %s", record.user_id)
            raise PasswordResetFailed() from exc
        audit("auth.password_reset", user_id=record.user_id)

    # --- email verification ---------------------------------------------------

    async def verify_email(self, token: str) -> None:
        record = await self.repository.find_email_verification_by_value(
            tokens.hash_email_verification_token(token)
        )
        if record is None:
            raise InvalidVerificationToken()
        if utcnow() >= record.expires_at:
            async with atomic(self.db):
                await self.repository.delete_email_verification(record.id)
            raise ExpiredVerificationToken()

        try:
            async with atomic(self.db):
                await self.repository.update_user_email_verified(record.user_id, True)
                await self.repository.delete_email_verification(record.id)
        except Exception as exc:
            logger.exception("Email verification transaction failed for user %s", record.user_id)
            raise EmailVerificationFailed() from exc
        logger.info("Email verified for user %s", record.user_id)

    async def resend_verification_email(self, email: str) -> Optional[VerificationResend]:
        user = await self.repository.find_user_by_email(email)
        if user is None or user.email_verified:
            return None

        token = tokens.generate_email_verification_token()
        try:
            async with atomic(self.db):
                await self.repository.delete_email_verifications_by_user_id(user.id)
                await self.repository.create_email_verification(
                    user_id=user.id,
                    identifier=user.email,
                    value=tokens.hash_email_verification_token(token),
                    expires_at=utcnow() + self.email_verification_ttl,
                )
        except Exception:
            logger.exception("Failed to issue a new verification token for user %s", user.id)
            return None
        return VerificationResend(user=user, verification_token=token)

    # --- otp ------------------------------------------------------------------

    async def request_otp_sign_in(self, email: str) -> Optional[str]:
        user = await self.repository.find_user_by_email(email)
        if user is None or not user.email_verified:
            return None

        code = tokens.generate_otp_code()
        async with atomic(self.db):
            await self.repository.delete_otp_codes_by_user_id(user.id)
            await self.repository.create_otp_code(
                user_id=user.id,
                hashed_code=tokens.hash_otp_code(code),
                expires_at=utcnow() + self.otp_ttl,
            )
        return code

    async def verify_otp_and_sign_in(self, email: str, otp: str) -> SignInResult:
        user = await self.repository.find_user_by_email(email)
        if user is None or not user.email_verified:
            raise InvalidOtp()

        record = await self.repository.find_otp_code_by_user_id(user.id)
        if record is None or not tokens.hashes_match(tokens.hash_otp_code(otp), record.hashed_code):
            raise InvalidOtp()
        if utcnow() >= record.expires_at:
            async with atomic(self.db):
                await self.repository.delete_otp_code(record.id)
            raise ExpiredOtp()

        async with atomic(self.db):
            await self.repository.delete_otp_code(record.id)
            _session, token = await self._issue_session(user.id)
        audit("auth.sign_in", user_id=user.id, method="otp")
        return SignInResult(user=user, session_token=token)

    # --- oauth ----------------------------------------------------------------

    async def handle_oauth_callback(self, details: OAuthUserDetails) -> SignInResult:
        user = await self.repository.find_user_by_provider_id(details.provider, details.provider_user_id)

        if user is None:
            if not details.email:
                raise OAuthEmailRequired(details.provider)
            existing = await self.repository.find_user_by_email(details.email)
            if existing is not None:
                user = await self._link_existing_user(existing, details)
            else:
                user = await self._create_oauth_user(details)

        _session, token = await self.create_session(user.id)
        audit("auth.sign_in", user_id=user.id, method=f"oauth:{details.provider}")
        return SignInResult(user=user, session_token=token)

    async def _link_existing_user(self, existing: UserOut, details: OAuthUserDetails) -> UserOut:
        try:
            async with atomic(self.db):
                await self.repository.link_oauth_account(
                    user_id=existing.id,
                    provider=details.provider,
                    provider_user_id=details.provider_user_id,
                )
        except Exception as exc:
            logger.exception("Failed to link %s account to user %s", details.provider, existing.id)
            raise OAuthLinkFailed() from exc

        user = await self.repository.find_user_by_id(existing.id)
        if user is None:
            raise OAuthRefetchFailed()
        return user

    async def _create_oauth_user(self, details: OAuthUserDetails) -> UserOut:
        try:
            async with atomic(self.db):
                user = await self.repository.create_user(
                    email=details.email,
                    username=details.username,
                    password_hash=None,
                    email_verified=True,
                    role=DEFAULT_ROLE,
                )
                org = await self.organization_repository.create_organization(
                    name=default_org_name(user.username)
                )
                await self.organization_repository.create_membership(
                    organization_id=org.id,
                    user_id=user.id,
                    role=OWNER_ROLE,
                    is_default=True,
                )
                await self.repository.link_oauth_account(
                    user_id=user.id,
                    provider=details.provider,
                    provider_user_id=details.provider_user_id,
                )
        except AppError:
            raise
        except Exception as exc:
            logger.exception("OAuth sign-up transaction failed for provider %s", details.provider)
            raise OAuthLinkFailed() from exc
        return user
