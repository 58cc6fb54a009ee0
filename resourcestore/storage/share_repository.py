"""
Repository for session shares.

All shares live in one ConfigMap (``agentapi-session-shares``) holding two
maps in ``shares.json``: token -> share and session ID -> token. Every
mutation is a read-modify-write of that single object performed under a
lock owned by the repository, and both maps are updated in the same write,
so the session index never points at a token that no longer exists.
"""
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from resourcestore.adapters import (
    KIND_CONFIG_MAP,
    AdapterError,
    ClientCallError,
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    StoredObject,
)
from resourcestore.annotations import LabelSchema
from resourcestore.entities import SessionShare, utcnow
from resourcestore.exceptions import BackendError, ShareNotFoundError

logger = logging.getLogger(__name__)

SHARES_OBJECT_NAME = "agentapi-session-shares"
SHARES_DATA_KEY = "shares.json"


class ShareIndex(BaseModel):
    """Serialized content of the shares object."""

    shares: Dict[str, SessionShare] = Field(default_factory=dict)
    session_to_token: Dict[str, str] = Field(default_factory=dict)

    def put(self, share: SessionShare) -> Optional[str]:
        """Add ``share``, dropping any previous share of the same session. Returns the dropped token."""
        previous = self.session_to_token.get(share.session_id)
        if previous and previous != share.token:
            self.shares.pop(previous, None)
        self.shares[share.token] = share
        self.session_to_token[share.session_id] = share.token
        return previous if previous != share.token else None

    def remove_token(self, token: str) -> Optional[SessionShare]:
        share = self.shares.pop(token, None)
        if share is not None and self.session_to_token.get(share.session_id) == token:
            del self.session_to_token[share.session_id]
        return share


class ShareRepository:
    """Repository for session share operations."""

    def __init__(
        self,
        client: MetadataObjectClient,
        *,
        schema: Optional[LabelSchema] = None,
        object_name: str = SHARES_OBJECT_NAME,
    ):
        """
        Initialize ShareRepository.

        Args:
            client: Metadata object client
            schema: Label namespace for the shares object
            object_name: Name of the ConfigMap holding every share
        """
        self.client = client
        self.schema = schema or LabelSchema()
        self.object_name = object_name
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Persistence of the shared object
    # ------------------------------------------------------------------

    def _load(self) -> ShareIndex:
        try:
            obj = self.client.read(KIND_CONFIG_MAP, self.object_name)
        except ObjectNotFoundError:
            return ShareIndex()
        except ClientCallError as e:
            raise BackendError(
                f"failed to read {self.object_name}: {e}",
                operation="get",
                original_error=e.original_error or e,
            ) from e
        raw = obj.data.get(SHARES_DATA_KEY)
        if not raw:
            return ShareIndex()
        try:
            return ShareIndex.model_validate_json(raw)
        except PydanticValidationError as e:
            # Writing on top of an unreadable object would drop every share.
            raise BackendError(
                f"{self.object_name} holds malformed share data",
                operation="decode",
                original_error=e,
            ) from e

    def _write(self, obj: StoredObject) -> None:
        """Replace the object, creating it on first use."""
        try:
            self.client.replace(obj)
        except ObjectNotFoundError:
            try:
                self.client.create(obj)
            except ObjectExistsError:
                # Created by another process since our replace.
                self.client.replace(obj)

    def _store(self, index: ShareIndex) -> None:
        obj = StoredObject(
            kind=KIND_CONFIG_MAP,
            name=self.object_name,
            labels={self.schema.type_label: "session-shares"},
            data={SHARES_DATA_KEY: index.model_dump_json()},
        )
        try:
            self._write(obj)
        except AdapterError as e:
            raise BackendError(
                f"failed to write {self.object_name}: {e}",
                operation="update",
                original_error=e.original_error or e,
            ) from e

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def save(self, share: SessionShare) -> None:
        """
        Save a share, replacing any earlier share of the same session.

        The earlier token stops resolving in the same write.
        """
        share.check()
        with self._lock:
            index = self._load()
            dropped = index.put(share.clone())
            self._store(index)
        if dropped:
            logger.info(f"Replaced share of session {share.session_id}; token {dropped[:8]}... revoked")
        else:
            logger.info(f"Created share for session {share.session_id}")

    def find_by_token(self, token: str) -> SessionShare:
        """
        Raises:
            ShareNotFoundError: No share has this token
        """
        with self._lock:
            index = self._load()
        share = index.shares.get(token)
        if share is None:
            raise ShareNotFoundError(token)
        return share

    def find_by_session_id(self, session_id: str) -> SessionShare:
        """
        Return the current share of a session.

        Expired shares are returned too; check SessionShare.is_expired().

        Raises:
            ShareNotFoundError: The session has no share
        """
        with self._lock:
            index = self._load()
        token = index.session_to_token.get(session_id)
        share = index.shares.get(token) if token else None
        if share is None:
            raise ShareNotFoundError(session_id)
        return share

    def list(self) -> List[SessionShare]:
        with self._lock:
            index = self._load()
        return list(index.shares.values())

    def delete(self, session_id: str) -> None:
        """
        Delete the share of a session.

        Raises:
            ShareNotFoundError: The session has no share
        """
        with self._lock:
            index = self._load()
            token = index.session_to_token.get(session_id)
            if not token or index.remove_token(token) is None:
                raise ShareNotFoundError(session_id)
            self._store(index)
        logger.info(f"Deleted share of session {session_id}")

    def delete_by_token(self, token: str) -> None:
        """
        Delete a share by token.

        Raises:
            ShareNotFoundError: No share has this token
        """
        with self._lock:
            index = self._load()
            share = index.remove_token(token)
            if share is None:
                raise ShareNotFoundError(token)
            self._store(index)
        logger.info(f"Deleted share of session {share.session_id}")

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove every expired share.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Number of shares removed
        """
        now = now or utcnow()
        with self._lock:
            index = self._load()
            expired = [token for token, share in index.shares.items() if share.is_expired(now)]
            for token in expired:
                index.remove_token(token)
            if expired:
                self._store(index)
        if expired:
            logger.info(f"Removed {len(expired)} expired session shares")
        return len(expired)
