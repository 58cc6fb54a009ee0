"""
Tests for the identifier codec.
"""
import hashlib

import pytest

from resourcestore.identifiers import hash_id, label_value, object_name, sanitize, sanitize_name


class TestSanitize:
    """Tests for sanitize()."""

    def test_lowercases_and_replaces_illegal_characters(self):
        assert sanitize("Org/Platform Team") == "org-platform-team"
        assert sanitize("alice@example.com") == "alice-example.com"

    def test_collapses_dash_runs(self):
        assert sanitize("a//b  c") == "a-b-c"

    def test_trims_separators(self):
        assert sanitize("--a__b..") == "a__b"
        assert sanitize("_.-x-._") == "x"

    def test_truncates_and_retrims(self):
        value = "a" * 62 + "-b"
        result = sanitize(value, 63)
        assert result == "a" * 62
        assert len(sanitize("x" * 100)) == 63

    def test_all_illegal_input_is_empty(self):
        assert sanitize("日本語") == ""
        assert sanitize("") == ""

    @pytest.mark.parametrize("raw", [
        "Org/Platform Team",
        "--a__b..",
        "user@@example..com",
        "a" * 62 + "-b",
        "MiXeD/Case/ID-123",
        "日本-team",
    ])
    def test_idempotent(self, raw):
        once = sanitize(raw)
        assert sanitize(once) == once

    def test_sanitize_name_drops_dots_and_underscores(self):
        assert sanitize_name("my_memory.v2") == "my-memory-v2"


class TestHash:
    """Tests for hash_id()."""

    def test_fixed_width_hex(self):
        value = hash_id("org/platform-team")
        assert len(value) == 16
        int(value, 16)

    def test_deterministic(self):
        expected = hashlib.sha256("org/platform-team".encode("utf-8")).hexdigest()[:16]
        assert hash_id("org/platform-team") == expected
        assert hash_id("org/platform-team") == hash_id("org/platform-team")

    def test_distinguishes_values_that_sanitize_alike(self):
        assert sanitize("org/team") == sanitize("org-team")
        assert hash_id("org/team") != hash_id("org-team")


class TestLabelValueAndObjectName:
    """Tests for label_value() and object_name()."""

    def test_label_legal_values_kept(self):
        assert label_value("user") == "user"
        assert label_value("Task_1.a") == "Task_1.a"

    def test_illegal_values_hashed(self):
        assert label_value("org/team") == hash_id("org/team")
        assert label_value("a" * 64) == hash_id("a" * 64)

    def test_object_name_sanitizes_id(self):
        assert object_name("agentapi-memory-", "Mem_01") == "agentapi-memory-mem-01"

    def test_object_name_falls_back_to_hash(self):
        assert object_name("agentapi-settings-", "日本") == "agentapi-settings-" + hash_id("日本")

    def test_object_name_length_limit(self):
        name = object_name("agentapi-memory-", "x" * 400)
        assert len(name) == 253
        assert name.startswith("agentapi-memory-")
