"""Typed application errors.

Every error carries an HTTP status, a stable machine-readable code and a
message that is safe to show to the caller. Server-side causes are chained
with ``raise ... from exc`` and logged, never rendered.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code: int = 400
    code: str = "APP_ERROR"
    message: str = "Request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)


# --- auth ---------------------------------------------------------------------


class InvalidCredentials(AppError):
    status_code = 401
    code = "AUTH_INVALID_CREDENTIALS"
    message = "Invalid credentials provided"


class Unauthorized(AppError):
    status_code = 401
    code = "AUTH_UNAUTHORIZED"
    message = "No session found"


class EmailNotVerified(AppError):
    status_code = 401
    code = "AUTH_EMAIL_NOT_VERIFIED"
    message = "Email not verified"


class WeakPassword(AppError):
    status_code = 400
    code = "AUTH_WEAK_PASSWORD"
    message = "Password is too weak"


class UserNotFound(AppError):
    status_code = 404
    code = "AUTH_USER_NOT_FOUND"
    message = "User not found"


class SessionNotFound(AppError):
    status_code = 404
    code = "AUTH_SESSION_NOT_FOUND"
    message = "Session not found"


class InvalidOtp(AppError):
    code = "AUTH_INVALID_OTP"
    message = "Invalid or expired OTP code provided"


class ExpiredOtp(AppError):
    code = "AUTH_EXPIRED_OTP"
    message = "OTP code has expired"


class InvalidPasswordResetToken(AppError):
    code = "AUTH_INVALID_PASSWORD_RESET_TOKEN"
    message = "Invalid password reset token"


class ExpiredPasswordResetToken(AppError):
    code = "AUTH_EXPIRED_PASSWORD_RESET_TOKEN"
    message = "Password reset token has expired"


class InvalidVerificationToken(AppError):
    code = "AUTH_INVALID_VERIFICATION_TOKEN"
    message = "Invalid email verification token."


class ExpiredVerificationToken(AppError):
    code = "AUTH_EXPIRED_VERIFICATION_TOKEN"
    message = "Email verification token has expired."


class OAuthEmailRequired(AppError):
    code = "AUTH_OAUTH_EMAIL_REQUIRED"

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"An email address is required to sign up or link your {provider} account. "
            f"Please ensure your {provider} account has a public email address or try "
            "another sign-in method.",
            details={"provider": provider},
        )


class PasswordResetFailed(AppError):
    status_code = 500
    code = "AUTH_PASSWORD_RESET_FAILED"
    message = "Failed to reset password due to a server error."


class EmailVerificationFailed(AppError):
    status_code = 500
    code = "AUTH_EMAIL_VERIFICATION_FAILED"
    message = "Failed to complete email verification due to a server error."


class SignUpFailed(AppError):
    status_code = 500
    code = "AUTH_SIGNUP_FAILED"
    message = "Failed to complete the sign-up process."


class OAuthLinkFailed(AppError):
    status_code = 500
    code = "AUTH_OAUTH_LINK_TX_FAILED"
    message = "Failed to link OAuth account during sign up."


class OAuthRefetchFailed(AppError):
    status_code = 500
    code = "AUTH_OAUTH_LINK_REFETCH_FAILED"
    message = "Failed to retrieve user details after linking OAuth account."


class OAuthProviderError(AppError):
    status_code = 502
    code = "AUTH_OAUTH_PROVIDER_ERROR"
    message = "OAuth provider request failed"


# --- admin --------------------------------------------------------------------


class AdminForbidden(AppError):
    status_code = 403
    code = "ADMIN_FORBIDDEN"
    message = "Forbidden: You do not have permission to perform this action."


class CannotImpersonateSelf(AppError):
    code = "ADMIN_CANNOT_IMPERSONATE_SELF"
    message = "Cannot impersonate yourself"


class NotImpersonating(AppError):
    code = "ADMIN_NOT_IMPERSONATING"
    message = "Not currently impersonating or session invalid for stopping impersonation"


class ImpersonationFailed(AppError):
    status_code = 500
    code = "ADMIN_IMPERSONATION_FAILED"
    message = "Failed to update session for impersonation"
