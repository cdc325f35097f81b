from pydantic import BaseModel, Field


class ImpersonateRequest(BaseModel):
    target_user_id: int = Field(gt=0)


class ImpersonationResponse(BaseModel):
    ok: bool = True
    message: str
