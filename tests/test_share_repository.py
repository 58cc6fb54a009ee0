"""
Tests for ShareRepository.
"""
import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from resourcestore.adapters import (
    KIND_CONFIG_MAP,
    ClientCallError,
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    StoredObject,
)
from resourcestore.entities import SessionShare, utcnow
from resourcestore.exceptions import BackendError, ShareNotFoundError
from resourcestore.storage import ShareRepository
from resourcestore.storage.share_repository import SHARES_DATA_KEY, SHARES_OBJECT_NAME, ShareIndex


@pytest.fixture
def shares(metadata_client):
    return ShareRepository(metadata_client)


def stored_index(metadata_client) -> ShareIndex:
    obj = metadata_client.stored(KIND_CONFIG_MAP, SHARES_OBJECT_NAME)
    return ShareIndex.model_validate_json(obj.data[SHARES_DATA_KEY])


class TestShareRepository:
    """Tests for the single shared shares object."""

    def test_save_and_find(self, shares, metadata_client):
        share = SessionShare.new("s1", "alice")
        shares.save(share)
        assert shares.find_by_token(share.token).session_id == "s1"
        assert shares.find_by_session_id("s1").token == share.token

        obj = metadata_client.stored(KIND_CONFIG_MAP, SHARES_OBJECT_NAME)
        assert obj.labels == {"agentapi.proxy/type": "session-shares"}

    def test_token_format(self):
        share = SessionShare.new("s1", "alice")
        assert len(share.token) == 32
        int(share.token, 16)

    def test_new_share_replaces_old(self, shares, metadata_client):
        first = SessionShare.new("s1", "alice")
        second = SessionShare.new("s1", "alice")
        shares.save(first)
        shares.save(second)

        assert shares.find_by_session_id("s1").token == second.token
        with pytest.raises(ShareNotFoundError):
            shares.find_by_token(first.token)
        index = stored_index(metadata_client)
        assert list(index.shares) == [second.token]

    def test_concurrent_saves_of_one_session(self, shares, metadata_client):
        created = [SessionShare.new("s1", f"user-{i}") for i in range(8)]
        threads = [threading.Thread(target=shares.save, args=(share,)) for share in created]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        current = shares.find_by_session_id("s1")
        index = stored_index(metadata_client)
        assert list(index.shares) == [current.token]
        assert index.session_to_token == {"s1": current.token}
        for share in created:
            if share.token != current.token:
                with pytest.raises(ShareNotFoundError):
                    shares.find_by_token(share.token)

    def test_sessions_are_independent(self, shares):
        shares.save(SessionShare.new("s1", "alice"))
        shares.save(SessionShare.new("s2", "bob"))
        assert sorted(s.session_id for s in shares.list()) == ["s1", "s2"]

    def test_delete(self, shares, metadata_client):
        share = SessionShare.new("s1", "alice")
        shares.save(share)
        shares.delete("s1")
        with pytest.raises(ShareNotFoundError):
            shares.find_by_token(share.token)
        assert stored_index(metadata_client).session_to_token == {}

    def test_delete_missing(self, shares):
        with pytest.raises(ShareNotFoundError):
            shares.delete("s1")
        with pytest.raises(ShareNotFoundError):
            shares.delete_by_token("abc")

    def test_delete_by_token(self, shares):
        share = SessionShare.new("s1", "alice")
        shares.save(share)
        shares.delete_by_token(share.token)
        with pytest.raises(ShareNotFoundError):
            shares.find_by_session_id("s1")

    def test_cleanup_expired(self, shares):
        now = utcnow()
        shares.save(SessionShare.new("s1", "alice", ttl=timedelta(hours=1)))
        shares.save(SessionShare.new("s2", "alice", ttl=timedelta(days=2)))
        shares.save(SessionShare.new("s3", "alice"))

        assert shares.cleanup_expired(now + timedelta(days=1)) == 1
        assert sorted(s.session_id for s in shares.list()) == ["s2", "s3"]
        assert shares.cleanup_expired(now + timedelta(days=1)) == 0

    def test_expired_share_still_found(self, shares):
        share = SessionShare.new("s1", "alice", ttl=timedelta(seconds=1))
        shares.save(share)
        found = shares.find_by_session_id("s1")
        assert found.is_expired(utcnow() + timedelta(minutes=1))

    def test_malformed_object_not_overwritten(self, shares, metadata_client):
        metadata_client.put_raw(StoredObject(name=SHARES_OBJECT_NAME, data={SHARES_DATA_KEY: "{broken"}))
        with pytest.raises(BackendError):
            shares.save(SessionShare.new("s1", "alice"))
        assert metadata_client.stored(KIND_CONFIG_MAP, SHARES_OBJECT_NAME).data[SHARES_DATA_KEY] == "{broken"

    def test_backend_failure(self, shares, metadata_client):
        metadata_client.fail["read"] = ClientCallError("timeout")
        with pytest.raises(BackendError):
            shares.list()

    def test_object_deleted_during_write(self):
        client = MagicMock(spec=MetadataObjectClient)
        client.read.side_effect = ObjectNotFoundError("missing")
        client.replace.side_effect = ObjectNotFoundError("missing")
        client.create.side_effect = ObjectExistsError("exists")
        with pytest.raises(BackendError):
            ShareRepository(client).save(SessionShare.new("s1", "alice"))
        assert client.replace.call_count == 2
