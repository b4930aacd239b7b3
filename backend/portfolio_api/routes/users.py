"""Admin session routes."""
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from portfolio_api.config import settings
from portfolio_api.services.auth import create_access_token, require_admin, verify_credentials

router = APIRouter(prefix="/api/users", tags=["users"])


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login")
async def login(body: LoginRequest, response: Response):
    """Check admin credentials and set the session cookie."""
    if not verify_credentials(body.username, body.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(body.username)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {
        "success": True,
        "message": "Login successful",
        "user": {"username": body.username},
        "token": token,
    }


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True, "message": "Logout successful"}


@router.get("/verify")
async def verify(admin: dict = Depends(require_admin)):
    """Protected: succeeds only with a valid admin token."""
    return {"success": True, "user": {"username": admin["username"]}}
