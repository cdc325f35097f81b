from __future__ import annotations

from app.core.exceptions import WeakPassword
from app.core.settings import Settings
from app.services.pwned import PwnedPasswordChecker


class PasswordPolicy:
    """Length bounds plus the breach-database lookup.

    Runs before any transaction is opened so a slow lookup never holds
    database locks.
    """

    def __init__(self, settings: Settings, checker: PwnedPasswordChecker | None = None) -> None:
        self.min_length = settings.password_min_length
        self.max_length = settings.password_max_length
        self.checker = checker or PwnedPasswordChecker(settings)

    def check_length(self, password: str) -> None:
        if len(password) < self.min_length or len(password) > self.max_length:
            raise WeakPassword(
                f"Password must be between {self.min_length} and {self.max_length} characters long."
            )

    async def enforce(self, password: str) -> None:
        self.check_length(password)
        if await self.checker.is_pwned(password):
            raise WeakPassword(
                "Password was found in a data breach. Please choose a different password "
                "and update it on all your accounts."
            )
