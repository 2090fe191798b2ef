from fastapi import APIRouter
from pydantic import BaseModel, Field

router = APIRouter(
    prefix="/api",
    tags=["Auth"]
)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ----------------------------------------
# Demo login, accepts any credentials
# ----------------------------------------

@router.post("/login")
def login(payload: LoginRequest):
    return {
        "user": {"email": payload.email, "role": "admin"},
        "token": "dev-token",
    }
