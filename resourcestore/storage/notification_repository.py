"""
Repository for notifications (in process memory).
"""
from typing import List, Optional

from resourcestore.entities import Notification
from resourcestore.exceptions import NotificationNotFoundError
from resourcestore.storage.in_memory_store import InMemoryStore


class NotificationRepository:
    """Repository for notification operations."""

    def __init__(self, store: Optional[InMemoryStore[Notification]] = None):
        self.store = store or InMemoryStore(NotificationNotFoundError)

    def save(self, notification: Notification) -> None:
        self.store.save(notification)

    def find_by_id(self, notification_id: str) -> Notification:
        return self.store.get(notification_id)

    def find_by_user_id(self, user_id: str, limit: int = 0) -> List[Notification]:
        """
        Return a user's notifications, newest first.

        Args:
            user_id: Recipient
            limit: Maximum number returned (0 for all)
        """
        found = self.store.find_all(lambda n: n.user_id == user_id)
        found.sort(key=lambda n: n.created_at, reverse=True)
        return found[:limit] if limit else found

    def find_by_session_id(self, session_id: str) -> List[Notification]:
        found = self.store.find_all(lambda n: n.session_id == session_id)
        found.sort(key=lambda n: n.created_at, reverse=True)
        return found

    def update(self, notification: Notification) -> None:
        self.store.update(notification)

    def delete(self, notification_id: str) -> None:
        self.store.delete(notification_id)
