import asyncio
import math
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.errors import NotFoundError, ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    """A stored user record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    email: str
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None


class UserPage(BaseModel):
    """One slice of the user list plus pagination metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    users: list[User]
    current_page: int
    total_pages: int
    total_users: int
    has_next: bool
    has_prev: bool


DEFAULT_USERS = (
    ("John Doe", "john@example.com"),
    ("Jane Smith", "jane@example.com"),
)


class UserStore:
    """In-memory user list guarded by an async lock."""

    def __init__(self, seed: bool = True) -> None:
        """Start with the demo users unless ``seed`` is False."""
        self._users: list[User] = []
        self._lock = asyncio.Lock()
        if seed:
            for index, (name, email) in enumerate(DEFAULT_USERS, start=1):
                self._users.append(User(id=index, name=name, email=email))

    def _find(self, user_id: int) -> User:
        """Return the stored user or raise :class:`NotFoundError`."""
        for user in self._users:
            if user.id == user_id:
                return user
        raise NotFoundError("User not found")

    def _ensure_unique_email(self, email: str, exclude_id: int | None = None) -> None:
        """Reject an e-mail already used by another user."""
        for user in self._users:
            if user.email == email and user.id != exclude_id:
                raise ValidationError("Email already exists")

    async def paginate(self, page: int = 1, limit: int = 10) -> UserPage:
        """Return a page of users using plain list slicing."""
        async with self._lock:
            start = (page - 1) * limit
            end = page * limit
            return UserPage(
                users=[user.model_copy() for user in self._users[start:end]],
                current_page=page,
                total_pages=math.ceil(len(self._users) / limit),
                total_users=len(self._users),
                has_next=end < len(self._users),
                has_prev=start > 0,
            )

    async def get(self, user_id: int) -> User:
        """Return a copy of one user."""
        async with self._lock:
            return self._find(user_id).model_copy()

    async def create(self, name: str, email: str) -> User:
        """Add a user; the id is one past the current highest id."""
        email = email.lower()
        async with self._lock:
            self._ensure_unique_email(email)
            next_id = max((user.id for user in self._users), default=0) + 1
            user = User(id=next_id, name=name, email=email)
            self._users.append(user)
            return user.model_copy()

    async def update(
        self, user_id: int, name: str | None = None, email: str | None = None
    ) -> User:
        """Change name and/or e-mail of an existing user."""
        async with self._lock:
            user = self._find(user_id)
            if email:
                email = email.lower()
                self._ensure_unique_email(email, exclude_id=user_id)
                user.email = email
            if name:
                user.name = name
            user.updated_at = _utcnow()
            return user.model_copy()

    async def delete(self, user_id: int) -> User:
        """Remove a user and return the removed record."""
        async with self._lock:
            user = self._find(user_id)
            self._users.remove(user)
            return user
