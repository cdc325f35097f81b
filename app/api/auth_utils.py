from typing import Optional

from fastapi import Request, Response

from app.core.settings import settings

OAUTH_STATE_COOKIE_MAX_AGE = 60 * 10
SESSION_TOKEN_HEADER = "X-Session-Token"


def read_session_token(request: Request) -> Optional[str]:
    """Session token from the cookie, falling back to an ``Authorization: Bearer`` header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_cookie_max_age_seconds,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def reissue_session_token(request: Request, response: Response, token: str) -> None:
    """Hand a rotated token back the same way the old one arrived.

    Cookie clients get a new cookie. Bearer clients have no cookie jar, so the
    token also goes out in ``X-Session-Token``.
    """
    set_session_cookie(response, token)
    if not request.cookies.get(settings.session_cookie_name):
        response.headers[SESSION_TOKEN_HEADER] = token


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")


def oauth_state_cookie_name(provider: str) -> str:
    return f"{provider}_oauth_state"


def set_oauth_state_cookie(response: Response, provider: str, state: str) -> None:
    response.set_cookie(
        key=oauth_state_cookie_name(provider),
        value=state,
        max_age=OAUTH_STATE_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
