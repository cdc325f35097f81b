"""k-anonymity lookup against the Pwned Passwords range API.

Only the first five hex characters of the password's SHA-1 leave the
process. Any transport or HTTP failure is treated as "not known to be
compromised" so sign-up never blocks on the third-party service.
"""

from __future__ import annotations

import hashlib
import logging

import httpx

from app.core.settings import Settings

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 5


def split_sha1(password: str) -> tuple[str, str]:
    digest = hashlib.sha1(password.encode("utf-8")).hexdigest().upper()
    return digest[:PREFIX_LENGTH], digest[PREFIX_LENGTH:]


def suffix_in_range_response(body: str, suffix: str) -> bool:
    for line in body.splitlines():
        returned_suffix, _, count = line.partition(":")
        if returned_suffix.strip().upper() != suffix:
            continue
        # Padding entries (Add-Padding header) always carry a count of zero.
        return count.strip() != "0"
    return False


class PwnedPasswordChecker:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.enabled = settings.pwned_passwords_enabled
        self.base_url = settings.pwned_passwords_url.rstrip("/")
        self.timeout = settings.pwned_passwords_timeout_seconds
        self._transport = transport

    async def is_pwned(self, password: str) -> bool:
        if not self.enabled:
            return False
        prefix, suffix = split_sha1(password)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/{prefix}", headers={"Add-Padding": "true"})
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Pwned Passwords lookup failed; treating password as not compromised: %s", exc)
            return False
        return suffix_in_range_response(response.text, suffix)
