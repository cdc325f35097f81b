from fastapi import APIRouter, Depends

from app.api import deps
from app.schemas.admin import ImpersonateRequest, ImpersonationResponse
from app.schemas.auth import SessionValidationResult
from app.services.admin import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/impersonate", response_model=ImpersonationResponse)
async def impersonate(
    payload: ImpersonateRequest,
    current: SessionValidationResult = Depends(deps.require_admin),
    admin_service: AdminService = Depends(deps.get_admin_service),
) -> ImpersonationResponse:
    await admin_service.start_impersonation(current.session.id, current.user.id, payload.target_user_id)
    return ImpersonationResponse(
        message=f"Admin {current.user.id} is now impersonating user {payload.target_user_id}"
    )


@router.post("/stop-impersonation", response_model=ImpersonationResponse)
async def stop_impersonation(
    current: SessionValidationResult = Depends(deps.get_current_session),
    admin_service: AdminService = Depends(deps.get_admin_service),
) -> ImpersonationResponse:
    # The session currently belongs to the impersonated user, so no role check here.
    await admin_service.stop_impersonation_for_session(current.session.id)
    return ImpersonationResponse(message="Impersonation stopped")
