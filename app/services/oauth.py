"""GitHub OAuth authorization-code flow."""

from __future__ import annotations

import logging
import secrets
from urllib.parse import urlencode

import httpx

from app.core.exceptions import OAuthProviderError
from app.core.settings import Settings, settings as default_settings
from app.schemas.auth import OAuthUserDetails

logger = logging.getLogger(__name__)

GITHUB_PROVIDER = "github"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"
USER_AGENT = "saas-starter-api"


def generate_state() -> str:
    return secrets.token_urlsafe(24)


class GitHubOAuthClient:
    def __init__(
        self,
        settings: Settings = default_settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = settings.github_client_id
        self.client_secret = settings.github_client_secret
        self.redirect_uri = settings.github_redirect_uri
        self._transport = transport

    def _ensure_configured(self) -> None:
        if not self.client_id or not self.client_secret:
            raise OAuthProviderError("GitHub OAuth is not configured", status_code=500)

    def authorization_url(self, state: str) -> str:
        self._ensure_configured()
        params = {"client_id": self.client_id, "state": state, "scope": "read:user user:email"}
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        self._ensure_configured()
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
        }
        if self.redirect_uri:
            payload["redirect_uri"] = self.redirect_uri
        async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
            response = await client.post(GITHUB_TOKEN_URL, data=payload, headers={"Accept": "application/json"})
        if response.status_code != 200:
            raise OAuthProviderError("Failed to exchange GitHub code")
        access_token = response.json().get("access_token")
        if not isinstance(access_token, str) or not access_token:
            # GitHub answers 200 with an "error" field for bad or reused codes.
            raise OAuthProviderError("GitHub did not return an access token", code="AUTH_OAUTH_INVALID_CODE")
        return access_token

    async def fetch_user(self, access_token: str) -> OAuthUserDetails:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        async with httpx.AsyncClient(base_url=GITHUB_API_URL, timeout=10, transport=self._transport) as client:
            user_response = await client.get("/user", headers=headers)
            profile = user_response.json() if user_response.status_code == 200 else {}
            if not profile.get("id"):
                raise OAuthProviderError("Failed to fetch GitHub user")

            email = profile.get("email") or None
            if not email:
                emails_response = await client.get("/user/emails", headers=headers)
                if emails_response.status_code == 200:
                    primary = next(
                        (e for e in emails_response.json() if e.get("primary") and e.get("verified")),
                        None,
                    )
                    email = primary.get("email") if primary else None
                else:
                    logger.warning("Could not fetch GitHub emails: status %s", emails_response.status_code)

        return OAuthUserDetails(
            provider=GITHUB_PROVIDER,
            provider_user_id=str(profile["id"]),
            email=email,
            username=profile.get("login") or f"github-{profile['id']}",
        )

    async def user_from_code(self, code: str) -> OAuthUserDetails:
        try:
            access_token = await self.exchange_code(code)
            return await self.fetch_user(access_token)
        except httpx.HTTPError as exc:
            logger.warning("GitHub request failed: %s", exc)
            raise OAuthProviderError() from exc
