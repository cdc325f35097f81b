from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    """A user row without its password hash."""

    id: int
    email: str
    username: str
    email_verified: bool
    role: str
    created_at: Optional[datetime] = None
    stripe_customer_id: Optional[str] = None

    class Config:
        from_attributes = True


class UserWithPassword(UserOut):
    password_hash: Optional[str] = None

    def without_password(self) -> UserOut:
        return UserOut.model_validate(self.model_dump(exclude={"password_hash"}))


class SessionOut(BaseModel):
    id: str
    user_id: int
    expires_at: datetime
    impersonator_user_id: Optional[int] = None
    active_organization_id: Optional[int] = None

    class Config:
        from_attributes = True


class SessionWithUser(BaseModel):
    session: SessionOut
    user: UserOut


class EmailVerificationOut(BaseModel):
    id: int
    user_id: int
    identifier: str
    value: str
    expires_at: datetime

    class Config:
        from_attributes = True


class PasswordResetTokenOut(BaseModel):
    id: int
    user_id: int
    hashed_token: str
    expires_at: datetime

    class Config:
        from_attributes = True


class OtpCodeOut(BaseModel):
    id: int
    user_id: int
    hashed_code: str
    expires_at: datetime

    class Config:
        from_attributes = True


class OAuthAccountOut(BaseModel):
    id: int
    user_id: int
    provider: str
    provider_user_id: str

    class Config:
        from_attributes = True


@dataclass(slots=True)
class OAuthUserDetails:
    provider: str
    provider_user_id: str
    email: Optional[str]
    username: str


@dataclass(slots=True)
class SessionValidationResult:
    session: Optional[SessionOut] = None
    user: Optional[UserOut] = None
    new_token: Optional[str] = None


@dataclass(slots=True)
class SignInResult:
    user: UserOut
    session_token: str


@dataclass(slots=True)
class VerificationResend:
    user: UserOut
    verification_token: str


# --- request / response bodies -----------------------------------------------


class SignInEmailRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


class SignUpEmailRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=255)
    org_name: Optional[str] = Field(default=None, max_length=255)


class EmailOnlyRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=1, max_length=255)


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(pattern=r"^\d{6}$")


class UserResponse(BaseModel):
    user: UserOut


class SessionResponse(BaseModel):
    session: SessionOut
    user: UserOut


class MessageResponse(BaseModel):
    message: str
