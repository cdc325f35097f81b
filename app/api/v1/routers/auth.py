import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse

from app.api import deps
from app.api.auth_utils import (
    clear_session_cookie,
    oauth_state_cookie_name,
    read_session_token,
    set_oauth_state_cookie,
    set_session_cookie,
)
from app.core.exceptions import AppError, InvalidVerificationToken, OAuthEmailRequired, OAuthProviderError
from app.core.limiter import limiter
from app.core.logging import audit
from app.core.settings import settings
from app.schemas.auth import (
    EmailOnlyRequest,
    MessageResponse,
    ResetPasswordRequest,
    SessionResponse,
    SessionValidationResult,
    SignInEmailRequest,
    SignUpEmailRequest,
    UserResponse,
    VerifyOtpRequest,
)
from app.services.auth import AuthService
from app.services.email import EmailService
from app.services.oauth import GITHUB_PROVIDER, GitHubOAuthClient, generate_state
from app.services.onboarding import OnboardingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

PASSWORD_RESET_SENT = "If an account with that email exists, a password reset link has been sent."
VERIFICATION_RESENT = (
    "If your email address is registered and not verified, a new verification link has been sent."
)
OTP_SENT = "If an account with that email exists and is verified, an OTP code has been sent."


async def _deliver(send, *args) -> None:
    """Run an email send, logging failures instead of surfacing them."""
    try:
        await send(*args)
    except Exception:
        logger.exception("Email delivery failed (%s)", getattr(send, "__name__", "send"))


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    url = f"{settings.frontend_url.rstrip('/')}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url, status_code=302)


@router.get("/session", response_model=SessionResponse)
async def get_session(current: SessionValidationResult = Depends(deps.get_current_session)) -> SessionResponse:
    return SessionResponse(session=current.session, user=current.user)


@router.post("/sign-in/email", response_model=UserResponse)
async def sign_in_email(
    payload: SignInEmailRequest,
    response: Response,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> UserResponse:
    result = await auth_service.sign_in_with_email(payload.email, payload.password)
    set_session_cookie(response, result.session_token)
    return UserResponse(user=result.user)


@router.post("/sign-up/email", response_model=UserResponse)
async def sign_up_email(
    payload: SignUpEmailRequest,
    background_tasks: BackgroundTasks,
    onboarding_service: OnboardingService = Depends(deps.get_onboarding_service),
    email_service: EmailService = Depends(deps.get_email_service),
) -> UserResponse:
    result = await onboarding_service.sign_up_and_create_organization(
        payload.email, payload.password, payload.username, payload.org_name
    )
    background_tasks.add_task(
        _deliver, email_service.send_verification_email, result.user.email, result.verification_token
    )
    return UserResponse(user=result.user)


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> MessageResponse:
    token = read_session_token(request)
    if token:
        await auth_service.invalidate_session(token)
        audit("auth.sign_out")
    clear_session_cookie(response)
    return MessageResponse(message="Signed out successfully")


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email(
    token: Optional[str] = Query(default=None),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> MessageResponse:
    if not token:
        raise InvalidVerificationToken("Email verification token not found.")
    await auth_service.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification-email", response_model=MessageResponse)
@limiter.limit(settings.email_rate_limit)
async def resend_verification_email(
    request: Request,
    payload: EmailOnlyRequest,
    background_tasks: BackgroundTasks,
    auth_service: AuthService = Depends(deps.get_auth_service),
    email_service: EmailService = Depends(deps.get_email_service),
) -> MessageResponse:
    result = await auth_service.resend_verification_email(payload.email)
    if result is not None:
        background_tasks.add_task(
            _deliver, email_service.send_verification_email, result.user.email, result.verification_token
        )
    return MessageResponse(message=VERIFICATION_RESENT)


@router.post("/request-password-reset", response_model=MessageResponse)
@limiter.limit(settings.email_rate_limit)
async def request_password_reset(
    request: Request,
    payload: EmailOnlyRequest,
    background_tasks: BackgroundTasks,
    auth_service: AuthService = Depends(deps.get_auth_service),
    email_service: EmailService = Depends(deps.get_email_service),
) -> MessageResponse:
    token = await auth_service.request_password_reset(payload.email)
    if token:
        background_tasks.add_task(_deliver, email_service.send_password_reset_email, payload.email, token)
    return MessageResponse(message=PASSWORD_RESET_SENT)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    response: Response,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> MessageResponse:
    await auth_service.reset_password(payload.token, payload.new_password)
    clear_session_cookie(response)
    return MessageResponse(message="Password has been reset successfully.")


@router.post("/sign-in/request-otp", response_model=MessageResponse)
@limiter.limit(settings.email_rate_limit)
async def request_otp(
    request: Request,
    payload: EmailOnlyRequest,
    background_tasks: BackgroundTasks,
    auth_service: AuthService = Depends(deps.get_auth_service),
    email_service: EmailService = Depends(deps.get_email_service),
) -> MessageResponse:
    otp = await auth_service.request_otp_sign_in(payload.email)
    if otp:
        background_tasks.add_task(_deliver, email_service.send_otp_email, payload.email, otp)
    return MessageResponse(message=OTP_SENT)


@router.post("/sign-in/verify-otp", response_model=UserResponse)
async def verify_otp(
    payload: VerifyOtpRequest,
    response: Response,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> UserResponse:
    result = await auth_service.verify_otp_and_sign_in(payload.email, payload.otp)
    set_session_cookie(response, result.session_token)
    return UserResponse(user=result.user)


@router.get("/sign-in/github")
async def sign_in_github(github: GitHubOAuthClient = Depends(deps.get_github_client)) -> RedirectResponse:
    state = generate_state()
    redirect = RedirectResponse(github.authorization_url(state), status_code=302)
    set_oauth_state_cookie(redirect, GITHUB_PROVIDER, state)
    return redirect


@router.get("/login/github/callback")
async def github_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    github: GitHubOAuthClient = Depends(deps.get_github_client),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> RedirectResponse:
    state_cookie = oauth_state_cookie_name(GITHUB_PROVIDER)
    stored_state = request.cookies.get(state_cookie)

    if not code or not state or not stored_state or state != stored_state:
        logger.warning("GitHub OAuth state mismatch or missing parameters")
        redirect = _frontend_redirect("/sign-in", error="oauth_state_mismatch")
    else:
        try:
            details = await github.user_from_code(code)
            result = await auth_service.handle_oauth_callback(details)
        except OAuthEmailRequired:
            redirect = _frontend_redirect("/sign-in", error="oauth_email_required")
        except OAuthProviderError as exc:
            logger.warning("GitHub OAuth provider error: %s", exc.code)
            error = "oauth_invalid_code" if exc.code == "AUTH_OAUTH_INVALID_CODE" else "github_api_failed"
            redirect = _frontend_redirect("/sign-in", error=error)
        except AppError as exc:
            logger.error("GitHub OAuth callback failed: %s", exc.code)
            redirect = _frontend_redirect("/sign-in", error="oauth_callback_failed")
        else:
            redirect = _frontend_redirect("/")
            set_session_cookie(redirect, result.session_token)

    redirect.delete_cookie(state_cookie, path="/")
    return redirect
