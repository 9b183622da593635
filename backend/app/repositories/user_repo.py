"""
User Repository

All users live in a single ``users`` blob in the users_auth_store.
"""

from __future__ import annotations

from typing import Any, Optional

from app.core.exceptions import DuplicateUserError
from app.storage.blob_store import USERS_STORE, BlobStore, get_store

USERS_KEY = "users"


class UserRepository:
    def __init__(self, store: BlobStore) -> None:
        self.store = store

    def list_users(self) -> list[dict[str, Any]]:
        data = self.store.get_json(USERS_KEY)
        return data if isinstance(data, list) else []

    def get_by_username(self, username: str) -> Optional[dict[str, Any]]:
        for user in self.list_users():
            if user.get("username") == username:
                return user
        return None

    def create_user(self, user: dict[str, Any]) -> dict[str, Any]:
        """
        Store a new user.

        Raises:
            DuplicateUserError: If the username is already taken
        """
        users = self.list_users()
        if any(u.get("username") == user["username"] for u in users):
            raise DuplicateUserError("Username already exists", {"username": user["username"]})
        users.append(user)
        self.store.set_json(USERS_KEY, users)
        return user


_user_repo: UserRepository | None = None


def get_user_repo() -> UserRepository:
    """Get the singleton UserRepository instance."""
    global _user_repo
    if _user_repo is None:
        _user_repo = UserRepository(get_store(USERS_STORE))
    return _user_repo
