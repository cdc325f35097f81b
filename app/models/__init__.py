from app.models.email_verification import EmailVerification
from app.models.membership import Membership
from app.models.oauth_account import OAuthAccount
from app.models.organization import Organization
from app.models.otp_code import OtpCode
from app.models.password_reset_token import PasswordResetToken
from app.models.session import UserSession
from app.models.user import User

__all__ = [
    "EmailVerification",
    "Membership",
    "OAuthAccount",
    "Organization",
    "OtpCode",
    "PasswordResetToken",
    "UserSession",
    "User",
]
