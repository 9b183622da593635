from __future__ import annotations

from typing import Any

from fastapi import HTTPException

from app.core.exceptions import DuplicateUserError, StorageError
from app.core.logging import get_logger
from app.core.utils import hash_password, new_id, verify_password
from app.repositories.user_repo import UserRepository
from app.schemas.models import LoginRequest, SignupRequest

logger = get_logger("pocketledger.services.auth")

MIN_PASSWORD_LENGTH = 6


class AuthService:
    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository

    def signup(self, payload: SignupRequest) -> dict[str, Any]:
        """Register a new user.

        Raises:
            HTTPException: 400 on missing fields or short password,
                409 if the username is taken
        """
        fields = payload.model_dump()
        if not all(str(value).strip() for value in fields.values()):
            raise HTTPException(status_code=400, detail="All fields are required")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            )

        user = {
            "id": new_id(),
            "first_name": payload.first_name.strip(),
            "last_name": payload.last_name.strip(),
            "username": payload.username.strip(),
            "mobile": payload.mobile.strip(),
            "password": hash_password(payload.password),
        }
        try:
            self.repository.create_user(user)
        except DuplicateUserError:
            logger.info(f"Signup rejected, username taken: {user['username']}")
            raise HTTPException(status_code=409, detail="Username already exists")
        except StorageError as e:
            logger.error(f"Signup failed: {e.message}")
            raise HTTPException(status_code=500, detail="Signup failed") from e

        logger.info(f"Registered user {user['username']}")
        return self.public_user(user)

    def login(self, payload: LoginRequest) -> dict[str, Any]:
        """Check credentials and return the user without the password."""
        if not payload.username or not payload.password:
            raise HTTPException(status_code=400, detail="Username and password are required")

        user = self.repository.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.get("password", "")):
            logger.info(f"Failed login for {payload.username}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        return self.public_user(user)

    @staticmethod
    def public_user(user: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in user.items() if key != "password"}
