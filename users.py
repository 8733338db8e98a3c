# users.py
"""
Demo user session.

Login is a lookup of the email in a static roster: there is no password and
the requested role is taken at face value. The signed-in user is kept in a
small JSON file that survives restarts, the way a browser keeps it in local
storage. Token issuance for the HTTP API lives in auth.py.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from db import simulate_latency
from errors import AccessDenied, NotAuthenticated, UserNotFound
from models import Role, Schema, User
from settings import settings

logger = logging.getLogger(__name__)


class UserUpdate(Schema):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    address: Optional[str] = None


class SessionStore:
    def __init__(self, roster: Iterable[Dict[str, Any]] = (), storage_path: Optional[Path] = None):
        self.storage_path = Path(storage_path or settings.SESSION_FILE)
        self.reset(roster)
        self.current_user = self._read_stored_user()

    def reset(self, roster: Iterable[Dict[str, Any]] = ()) -> None:
        self._roster: List[User] = [User.model_validate(u) for u in roster]

    # --- durable storage ---

    def _read_stored_user(self) -> Optional[User]:
        if not self.storage_path.exists():
            return None
        try:
            return User.model_validate_json(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Could not read stored user from {self.storage_path}: {e}")
            return None

    def _store_user(self, user: Optional[User]) -> None:
        if user is None:
            self.storage_path.unlink(missing_ok=True)
            return
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(user.model_dump_json(by_alias=True), encoding="utf-8")

    # --- operations ---

    async def login(self, email: str, role: Role = "customer") -> User:
        await simulate_latency(300)
        wanted = email.lower()
        user = next((u for u in self._roster if u.email.lower() == wanted), None)
        if user is None:
            raise UserNotFound("User not found. Please check your email address.")

        # Demo only: the requested role overrides the roster's.
        authenticated = User.model_validate({**user.model_dump(), "role": role})
        self._store_user(authenticated)
        self.current_user = authenticated
        logger.info(f"User {authenticated.id} signed in as {role}.")
        return authenticated.model_copy()

    async def logout(self) -> bool:
        await simulate_latency(200)
        if self.current_user is not None:
            logger.info(f"User {self.current_user.id} signed out.")
        self.forget_current_user()
        return True

    def forget_current_user(self) -> None:
        self._store_user(None)
        self.current_user = None

    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def has_role(self, role: str) -> bool:
        return self.current_user is not None and self.current_user.role == role

    async def get_profile(self) -> User:
        await simulate_latency(200)
        if self.current_user is None:
            raise NotAuthenticated("No authenticated user found")
        return self.current_user.model_copy()

    async def update_profile(self, patch: UserUpdate) -> User:
        await simulate_latency(300)
        if self.current_user is None:
            raise NotAuthenticated("No authenticated user found")

        changes = patch.model_dump(exclude_unset=True)
        updated = User.model_validate({**self.current_user.model_dump(), **changes, "id": self.current_user.id})
        self._store_user(updated)
        self.current_user = updated
        return updated.model_copy()

    async def get_all_users(self) -> List[User]:
        await simulate_latency(200)
        if not self.has_role("admin"):
            raise AccessDenied("Access denied. Admin role required.")
        return [u.model_copy() for u in self._roster]
