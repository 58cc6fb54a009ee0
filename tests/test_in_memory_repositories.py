"""
Tests for the in-process session, user and notification repositories.
"""
import threading
from datetime import timedelta

import pytest

from resourcestore.entities import Notification, Session, User, utcnow
from resourcestore.exceptions import (
    DuplicateError,
    NotificationNotFoundError,
    SessionNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from resourcestore.locks import ReadWriteLock
from resourcestore.storage import (
    NotificationRepository,
    SessionFilter,
    SessionRepository,
    UserRepository,
)


def make_sessions(repo, count=5):
    base = utcnow()
    for i in range(count):
        repo.save(Session(
            id=f"s{i}",
            user_id="alice" if i % 2 == 0 else "bob",
            status="active" if i < 3 else "stopped",
            tags={"repo": "api"} if i in (1, 2) else {},
            created_at=base + timedelta(minutes=i),
        ))


class TestSessionRepository:
    """Tests for SessionRepository."""

    def test_returned_copies_are_isolated(self):
        repo = SessionRepository()
        session = Session(id="s1", user_id="alice")
        repo.save(session)
        session.status = "active"
        assert repo.find_by_id("s1").status == "starting"

        loaded = repo.find_by_id("s1")
        loaded.tags["x"] = "y"
        assert repo.find_by_id("s1").tags == {}

    def test_find_by_user_and_status(self):
        repo = SessionRepository()
        make_sessions(repo)
        assert {s.id for s in repo.find_by_user_id("alice")} == {"s0", "s2", "s4"}
        assert {s.id for s in repo.find_by_status("stopped")} == {"s3", "s4"}
        assert repo.count() == 5
        assert repo.count_by_user_id("bob") == 2

    def test_filter_sort_and_page(self):
        repo = SessionRepository()
        make_sessions(repo)
        result = repo.find_with_filter(SessionFilter(status="active"))
        assert [s.id for s in result] == ["s2", "s1", "s0"]

        result = repo.find_with_filter(SessionFilter(sort_order="asc", limit=2, offset=1))
        assert [s.id for s in result] == ["s1", "s2"]

        result = repo.find_with_filter(SessionFilter(tags={"repo": "api"}, user_id="bob"))
        assert [s.id for s in result] == ["s1"]

    def test_filter_validation(self):
        repo = SessionRepository()
        with pytest.raises(ValidationError):
            repo.find_with_filter(SessionFilter(sort_by="port"))
        with pytest.raises(ValidationError):
            repo.find_with_filter(SessionFilter(limit=-1))

    def test_update_and_delete(self):
        repo = SessionRepository()
        repo.save(Session(id="s1", user_id="alice"))
        session = repo.find_by_id("s1")
        session.status = "active"
        repo.update(session)
        assert repo.find_by_id("s1").is_active()

        repo.delete("s1")
        with pytest.raises(SessionNotFoundError):
            repo.find_by_id("s1")
        with pytest.raises(SessionNotFoundError):
            repo.delete("s1")
        with pytest.raises(SessionNotFoundError):
            repo.update(session)


class TestUserRepository:
    """Tests for UserRepository."""

    def test_lookups(self):
        repo = UserRepository()
        repo.save(User(id="u1", username="alice", email="Alice@Example.com"))
        assert repo.find_by_username("alice").id == "u1"
        assert repo.find_by_email("alice@example.com").id == "u1"
        assert repo.exists("u1")
        with pytest.raises(UserNotFoundError):
            repo.find_by_username("bob")
        with pytest.raises(UserNotFoundError):
            repo.find_by_email("bob@example.com")

    def test_username_unique(self):
        repo = UserRepository()
        repo.save(User(id="u1", username="alice"))
        with pytest.raises(DuplicateError) as exc_info:
            repo.save(User(id="u2", username="alice"))
        assert exc_info.value.field == "username"
        repo.save(User(id="u1", username="alice", display_name="Alice"))
        assert repo.count() == 1

    def test_concurrent_same_username(self):
        repo = UserRepository()
        errors = []

        def save(i):
            try:
                repo.save(User(id=f"u{i}", username="alice"))
            except DuplicateError as e:
                errors.append(e)

        threads = [threading.Thread(target=save, args=(i,)) for i in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert repo.count() == 1
        assert len(errors) == 9

    def test_delete_missing(self):
        with pytest.raises(UserNotFoundError):
            UserRepository().delete("u1")


class TestNotificationRepository:
    """Tests for NotificationRepository."""

    def test_newest_first_with_limit(self):
        repo = NotificationRepository()
        base = utcnow()
        for i in range(3):
            repo.save(Notification(id=f"n{i}", user_id="alice", session_id="s1", title="t",
                                   created_at=base + timedelta(seconds=i)))
        repo.save(Notification(id="other", user_id="bob", title="t"))

        assert [n.id for n in repo.find_by_user_id("alice")] == ["n2", "n1", "n0"]
        assert [n.id for n in repo.find_by_user_id("alice", limit=1)] == ["n2"]
        assert len(repo.find_by_session_id("s1")) == 3

    def test_update_and_delete(self):
        repo = NotificationRepository()
        repo.save(Notification(id="n1", user_id="alice", title="t"))
        notification = repo.find_by_id("n1")
        notification.status = "delivered"
        repo.update(notification)
        assert repo.find_by_id("n1").status == "delivered"
        repo.delete("n1")
        with pytest.raises(NotificationNotFoundError):
            repo.find_by_id("n1")

    def test_title_required(self):
        with pytest.raises(ValidationError):
            NotificationRepository().save(Notification(id="n1", user_id="alice"))


class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    def test_readers_share(self):
        lock = ReadWriteLock()
        with lock.read_locked():
            acquired = threading.Event()

            def reader():
                with lock.read_locked():
                    acquired.set()

            thread = threading.Thread(target=reader)
            thread.start()
            assert acquired.wait(timeout=2)
            thread.join()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        with lock.write_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            assert not acquired.wait(timeout=0.1)
        assert acquired.wait(timeout=2)
        thread.join()
