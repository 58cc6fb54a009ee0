"""
Repository for users (in process memory).
"""
import threading
from typing import List, Optional

from resourcestore.entities import User
from resourcestore.exceptions import DuplicateError, UserNotFoundError
from resourcestore.storage.in_memory_store import InMemoryStore


class UserRepository:
    """Repository for user operations.

    Usernames are unique; saving a second user with a taken username fails.
    """

    def __init__(self, store: Optional[InMemoryStore[User]] = None):
        self.store = store or InMemoryStore(UserNotFoundError)
        self._save_lock = threading.Lock()

    def save(self, user: User) -> None:
        """
        Raises:
            DuplicateError: Another user already has this username
        """
        with self._save_lock:
            other = self.store.find_first(lambda u: u.username == user.username and u.id != user.id)
            if other is not None:
                raise DuplicateError("User", "username", user.username)
            self.store.save(user)

    def find_by_id(self, user_id: str) -> User:
        return self.store.get(user_id)

    def find_by_username(self, username: str) -> User:
        """
        Raises:
            UserNotFoundError: No user has this username
        """
        user = self.store.find_first(lambda u: u.username == username)
        if user is None:
            raise UserNotFoundError(username)
        return user

    def find_by_email(self, email: str) -> User:
        user = self.store.find_first(lambda u: bool(u.email) and u.email.lower() == email.lower())
        if user is None:
            raise UserNotFoundError(email)
        return user

    def find_all(self) -> List[User]:
        return self.store.find_all()

    def update(self, user: User) -> None:
        self.store.update(user)

    def delete(self, user_id: str) -> None:
        self.store.delete(user_id)

    def exists(self, user_id: str) -> bool:
        return self.store.exists(user_id)

    def count(self) -> int:
        return self.store.count()
