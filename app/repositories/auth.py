"""Data access for users, sessions and one-time credentials.

Each method issues exactly one SQL statement and returns the row(s) as
schema objects, ``None`` or a row count. Nothing here raises for "not
found"; business rules live in :mod:`app.services.auth`.

``password_hash`` is only ever projected by
:meth:`AuthRepository.find_user_with_password_by_email`, which callers use
immediately before verifying a password.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    EmailVerification,
    OAuthAccount,
    OtpCode,
    PasswordResetToken,
    User,
    UserSession,
)
from app.schemas.auth import (
    EmailVerificationOut,
    OAuthAccountOut,
    OtpCodeOut,
    PasswordResetTokenOut,
    SessionOut,
    SessionWithUser,
    UserOut,
    UserWithPassword,
)

USER_COLUMNS = (
    User.id,
    User.email,
    User.username,
    User.email_verified,
    User.role,
    User.created_at,
    User.stripe_customer_id,
)


def _row_to(schema, row) -> Any:
    if row is None:
        return None
    return schema.model_validate(dict(row._mapping))


def _entity_to(schema, entity) -> Any:
    if entity is None:
        return None
    return schema.model_validate(entity)


class AuthRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # --- users ----------------------------------------------------------------

    async def find_user_by_id(self, user_id: int) -> Optional[UserOut]:
        result = await self.db.execute(select(*USER_COLUMNS).where(User.id == user_id))
        return _row_to(UserOut, result.first())

    async def find_user_by_email(self, email: str) -> Optional[UserOut]:
        result = await self.db.execute(select(*USER_COLUMNS).where(User.email == email))
        return _row_to(UserOut, result.first())

    async def find_user_with_password_by_email(self, email: str) -> Optional[UserWithPassword]:
        stmt = select(*USER_COLUMNS, User.password_hash).where(User.email == email)
        result = await self.db.execute(stmt)
        return _row_to(UserWithPassword, result.first())

    async def create_user(
        self,
        *,
        email: str,
        username: str,
        password_hash: Optional[str],
        email_verified: bool = False,
        role: str = "USER",
    ) -> UserOut:
        stmt = (
            insert(User)
            .values(
                email=email,
                username=username,
                password_hash=password_hash,
                email_verified=email_verified,
                role=role,
            )
            .returning(*USER_COLUMNS)
        )
        result = await self.db.execute(stmt)
        return _row_to(UserOut, result.one())

    async def update_user_password(self, user_id: int, password_hash: str) -> int:
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        result = await self.db.execute(stmt)
        return result.rowcount

    async def update_user_email_verified(self, user_id: int, verified: bool) -> int:
        stmt = update(User).where(User.id == user_id).values(email_verified=verified)
        result = await self.db.execute(stmt)
        return result.rowcount

    # --- sessions -------------------------------------------------------------

    async def create_session(self, *, session_id: str, user_id: int, expires_at: datetime) -> SessionOut:
        stmt = (
            insert(UserSession)
            .values(id=session_id, user_id=user_id, expires_at=expires_at)
            .returning(
                UserSession.id,
                UserSession.user_id,
                UserSession.expires_at,
                UserSession.impersonator_user_id,
                UserSession.active_organization_id,
            )
        )
        result = await self.db.execute(stmt)
        return _row_to(SessionOut, result.one())

    async def find_session_by_id(self, session_id: str) -> Optional[SessionOut]:
        result = await self.db.execute(select(UserSession).where(UserSession.id == session_id))
        return _entity_to(SessionOut, result.scalar_one_or_none())

    async def find_session_with_user(self, session_id: str) -> Optional[SessionWithUser]:
        stmt = (
            select(UserSession, *USER_COLUMNS)
            .join(User, User.id == UserSession.user_id)
            .where(UserSession.id == session_id)
        )
        result = await self.db.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return SessionWithUser(
            session=SessionOut.model_validate(row[0]),
            user=_row_to(UserOut, row),
        )

    async def update_session_id_and_expiry(
        self, session_id: str, *, new_session_id: str, expires_at: datetime
    ) -> int:
        stmt = (
            update(UserSession)
            .where(UserSession.id == session_id)
            .values(id=new_session_id, expires_at=expires_at)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def update_session_impersonation(
        self, session_id: str, *, user_id: int, impersonator_user_id: Optional[int]
    ) -> int:
        stmt = (
            update(UserSession)
            .where(UserSession.id == session_id)
            .values(user_id=user_id, impersonator_user_id=impersonator_user_id)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def delete_session(self, session_id: str) -> int:
        result = await self.db.execute(delete(UserSession).where(UserSession.id == session_id))
        return result.rowcount

    async def delete_all_user_sessions(self, user_id: int) -> int:
        result = await self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        return result.rowcount

    # --- email verification ---------------------------------------------------

    async def create_email_verification(
        self, *, user_id: int, identifier: str, value: str, expires_at: datetime
    ) -> EmailVerificationOut:
        stmt = (
            insert(EmailVerification)
            .values(user_id=user_id, identifier=identifier, value=value, expires_at=expires_at)
            .returning(
                EmailVerification.id,
                EmailVerification.user_id,
                EmailVerification.identifier,
                EmailVerification.value,
                EmailVerification.expires_at,
            )
        )
        result = await self.db.execute(stmt)
        return _row_to(EmailVerificationOut, result.one())

    async def find_email_verification_by_value(self, value: str) -> Optional[EmailVerificationOut]:
        result = await self.db.execute(select(EmailVerification).where(EmailVerification.value == value))
        return _entity_to(EmailVerificationOut, result.scalar_one_or_none())

    async def delete_email_verification(self, token_id: int) -> int:
        result = await self.db.execute(delete(EmailVerification).where(EmailVerification.id == token_id))
        return result.rowcount

    async def delete_email_verifications_by_user_id(self, user_id: int) -> int:
        result = await self.db.execute(delete(EmailVerification).where(EmailVerification.user_id == user_id))
        return result.rowcount

    # --- password reset -------------------------------------------------------

    async def create_password_reset_token(
        self, *, user_id: int, hashed_token: str, expires_at: datetime
    ) -> PasswordResetTokenOut:
        stmt = (
            insert(PasswordResetToken)
            .values(user_id=user_id, hashed_token=hashed_token, expires_at=expires_at)
            .returning(
                PasswordResetToken.id,
                PasswordResetToken.user_id,
                PasswordResetToken.hashed_token,
                PasswordResetToken.expires_at,
            )
        )
        result = await self.db.execute(stmt)
        return _row_to(PasswordResetTokenOut, result.one())

    async def find_password_reset_token_by_hashed_token(
        self, hashed_token: str
    ) -> Optional[PasswordResetTokenOut]:
        stmt = select(PasswordResetToken).where(PasswordResetToken.hashed_token == hashed_token)
        result = await self.db.execute(stmt)
        return _entity_to(PasswordResetTokenOut, result.scalar_one_or_none())

    async def delete_password_reset_token(self, token_id: int) -> int:
        result = await self.db.execute(delete(PasswordResetToken).where(PasswordResetToken.id == token_id))
        return result.rowcount

    async def delete_password_reset_tokens_by_user_id(self, user_id: int) -> int:
        stmt = delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.rowcount

    # --- otp ------------------------------------------------------------------

    async def create_otp_code(self, *, user_id: int, hashed_code: str, expires_at: datetime) -> OtpCodeOut:
        stmt = (
            insert(OtpCode)
            .values(user_id=user_id, hashed_code=hashed_code, expires_at=expires_at)
            .returning(OtpCode.id, OtpCode.user_id, OtpCode.hashed_code, OtpCode.expires_at)
        )
        result = await self.db.execute(stmt)
        return _row_to(OtpCodeOut, result.one())

    async def find_otp_code_by_user_id(self, user_id: int) -> Optional[OtpCodeOut]:
        stmt = (
            select(OtpCode)
            .where(OtpCode.user_id == user_id)
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return _entity_to(OtpCodeOut, result.scalar_one_or_none())

    async def delete_otp_code(self, code_id: int) -> int:
        result = await self.db.execute(delete(OtpCode).where(OtpCode.id == code_id))
        return result.rowcount

    async def delete_otp_codes_by_user_id(self, user_id: int) -> int:
        result = await self.db.execute(delete(OtpCode).where(OtpCode.user_id == user_id))
        return result.rowcount

    # --- oauth ----------------------------------------------------------------

    async def find_user_by_provider_id(self, provider: str, provider_user_id: str) -> Optional[UserOut]:
        stmt = (
            select(*USER_COLUMNS)
            .join(OAuthAccount, OAuthAccount.user_id == User.id)
            .where(
                OAuthAccount.provider == provider,
                OAuthAccount.provider_user_id == provider_user_id,
            )
        )
        result = await self.db.execute(stmt)
        return _row_to(UserOut, result.first())

    async def link_oauth_account(self, *, user_id: int, provider: str, provider_user_id: str) -> OAuthAccountOut:
        stmt = (
            insert(OAuthAccount)
            .values(user_id=user_id, provider=provider, provider_user_id=provider_user_id)
            .returning(
                OAuthAccount.id,
                OAuthAccount.user_id,
                OAuthAccount.provider,
                OAuthAccount.provider_user_id,
            )
        )
        result = await self.db.execute(stmt)
        return _row_to(OAuthAccountOut, result.one())
