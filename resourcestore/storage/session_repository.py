"""
Repository for agent sessions.

Sessions describe running processes of this host, so they only ever live
in process memory.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from resourcestore.entities import Session
from resourcestore.exceptions import SessionNotFoundError, ValidationError
from resourcestore.filters import matches_tags
from resourcestore.storage.in_memory_store import InMemoryStore

SORT_FIELDS = ("created_at", "updated_at")


class SessionFilter(BaseModel):
    """Predicates, ordering and paging for find_with_filter."""

    user_id: str = ""
    status: str = ""
    tags: dict = Field(default_factory=dict)
    sort_by: str = "created_at"
    sort_order: str = "desc"
    limit: int = 0
    offset: int = 0


class SessionRepository:
    """Repository for session operations."""

    def __init__(self, store: Optional[InMemoryStore[Session]] = None):
        self.store = store or InMemoryStore(SessionNotFoundError)

    def save(self, session: Session) -> None:
        self.store.save(session)

    def find_by_id(self, session_id: str) -> Session:
        """
        Raises:
            SessionNotFoundError: No session has this ID
        """
        return self.store.get(session_id)

    def find_by_user_id(self, user_id: str) -> List[Session]:
        return self.store.find_all(lambda s: s.user_id == user_id)

    def find_by_status(self, status: str) -> List[Session]:
        return self.store.find_all(lambda s: s.status == status)

    def find_all(self) -> List[Session]:
        return self.store.find_all()

    def find_with_filter(self, flt: SessionFilter) -> List[Session]:
        """
        Find sessions matching ``flt``, sorted and paged.

        Args:
            flt: Filter; empty predicates match everything, limit 0 means unlimited

        Returns:
            Matching sessions

        Raises:
            ValidationError: Unknown sort field or negative paging values
        """
        if flt.sort_by not in SORT_FIELDS:
            raise ValidationError(f"cannot sort sessions by {flt.sort_by}", field="sort_by", value=flt.sort_by)
        if flt.limit < 0 or flt.offset < 0:
            raise ValidationError("limit and offset must be non-negative", field="limit")

        def wanted(session: Session) -> bool:
            if flt.user_id and session.user_id != flt.user_id:
                return False
            if flt.status and session.status != flt.status:
                return False
            return matches_tags(session.tags, flt.tags)

        sessions = self.store.find_all(wanted)
        sessions.sort(key=lambda s: getattr(s, flt.sort_by), reverse=flt.sort_order != "asc")
        sessions = sessions[flt.offset:]
        if flt.limit:
            sessions = sessions[:flt.limit]
        return sessions

    def update(self, session: Session) -> None:
        session.touch()
        self.store.update(session)

    def delete(self, session_id: str) -> None:
        self.store.delete(session_id)

    def count(self) -> int:
        return self.store.count()

    def count_by_user_id(self, user_id: str) -> int:
        return self.store.count(lambda s: s.user_id == user_id)
