from dataclasses import dataclass

from app.schemas.auth import UserOut


@dataclass(slots=True)
class SignUpResult:
    user: UserOut
    organization_id: int
    verification_token: str
