"""
Auth API Routes

Signup, login and logout. Login stores the user in an http-only ``user``
cookie which later requests are identified by.
"""

import json
import os

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_auth_service
from app.auth.session import SESSION_COOKIE, SESSION_MAX_AGE, SessionUser, get_current_user
from app.schemas.models import LoginRequest, SignupRequest, UserResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> dict:
    return service.signup(payload)


@router.post("/login", response_model=UserResponse)
def login(
    payload: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> dict:
    user = service.login(payload)
    response.set_cookie(
        SESSION_COOKIE,
        json.dumps(user, separators=(",", ":")),
        httponly=True,
        secure=os.environ.get("ENVIRONMENT", "development") == "production",
        path="/",
        max_age=SESSION_MAX_AGE,
    )
    return user


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"status": "logged_out"}


@router.get("/me")
def get_current_user_info(
    user: SessionUser = Depends(get_current_user),
) -> dict:
    """Get information about the current user."""
    return {
        "username": user.uid,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }
