"""
Tests for encryption services, the registry, the factory and the field codec.
"""
import base64
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from resourcestore.config import StoreSettings
from resourcestore.encryption import (
    EncryptedData,
    EncryptionServiceFactory,
    EncryptionServiceRegistry,
    FieldEncryptionCodec,
    KMSEncryptionService,
    LocalEncryptionService,
    NoopEncryptionService,
    key_fingerprint,
)
from resourcestore.exceptions import EncryptionError

# Same key as the local_service fixture.
TEST_KEY = bytes(range(32))


class TestEnvelope:
    """Tests for envelope detection."""

    def test_round_trip_json(self, local_service):
        envelope = local_service.encrypt("secret")
        raw = json.loads(envelope.to_json())
        assert set(raw) == {"EncryptedValue", "Metadata"}
        assert raw["Metadata"]["Algorithm"] == "aes-256-gcm"
        assert raw["Metadata"]["Version"] == "v1"
        assert EncryptedData.from_stored(envelope.to_json()) == envelope

    @pytest.mark.parametrize("value", [
        "",
        "tok-123",
        "{not json",
        '{"token": "abc"}',
        '{"EncryptedValue": 5, "Metadata": {"Algorithm": "noop"}}',
        '{"EncryptedValue": "x", "Metadata": {}}',
        '["EncryptedValue"]',
    ])
    def test_plaintext_is_not_an_envelope(self, value):
        assert EncryptedData.from_stored(value) is None


class TestLocalEncryptionService:
    """Tests for AES-256-GCM encryption."""

    def test_encrypt_decrypt(self, local_service):
        envelope = local_service.encrypt("hello")
        assert envelope.encrypted_value != "hello"
        assert local_service.decrypt(envelope) == "hello"

    def test_nonce_is_random(self, local_service):
        assert local_service.encrypt("x").encrypted_value != local_service.encrypt("x").encrypted_value

    def test_key_id_is_fingerprint(self, local_service):
        assert local_service.key_id == key_fingerprint(TEST_KEY)
        assert local_service.key_id.startswith("sha256:")
        assert len(local_service.key_id) == len("sha256:") + 16

    def test_rejects_wrong_key_size(self):
        with pytest.raises(EncryptionError):
            LocalEncryptionService(b"short")

    def test_from_base64(self):
        service = LocalEncryptionService.from_base64(base64.b64encode(TEST_KEY).decode())
        assert service.key_id == key_fingerprint(TEST_KEY)

    def test_from_base64_invalid(self):
        with pytest.raises(EncryptionError):
            LocalEncryptionService.from_base64("not base64!")

    def test_from_file(self, tmp_path):
        path = tmp_path / "key"
        path.write_bytes(TEST_KEY)
        assert LocalEncryptionService.from_file(str(path)).key_id == key_fingerprint(TEST_KEY)

    def test_wrong_key_fails(self, local_service):
        envelope = local_service.encrypt("hello")
        other = LocalEncryptionService(bytes(32))
        with pytest.raises(EncryptionError):
            other.decrypt(envelope)

    def test_short_ciphertext(self, local_service):
        envelope = local_service.encrypt("hello")
        envelope.encrypted_value = base64.b64encode(b"abc").decode()
        with pytest.raises(EncryptionError):
            local_service.decrypt(envelope)


class TestKMSEncryptionService:
    """Tests for the KMS service against a mocked boto3 client."""

    def test_encrypt_decrypt(self):
        kms = MagicMock()
        kms.encrypt.return_value = {"CiphertextBlob": b"sealed"}
        kms.decrypt.return_value = {"Plaintext": b"hello"}
        service = KMSEncryptionService("alias/test", "us-east-1", client=kms)

        envelope = service.encrypt("hello")
        assert envelope.metadata.algorithm == "aws-kms"
        assert envelope.metadata.key_id == "alias/test"
        assert base64.b64decode(envelope.encrypted_value) == b"sealed"
        assert service.decrypt(envelope) == "hello"
        kms.decrypt.assert_called_once_with(CiphertextBlob=b"sealed", KeyId="alias/test")

    def test_client_error_wrapped(self):
        kms = MagicMock()
        kms.encrypt.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "Encrypt")
        service = KMSEncryptionService("alias/test", "us-east-1", client=kms)
        with pytest.raises(EncryptionError) as exc_info:
            service.encrypt("hello")
        assert exc_info.value.operation == "encrypt"


class TestRegistry:
    """Tests for decryption service selection."""

    def test_exact_then_algorithm_then_primary(self, local_service):
        noop = NoopEncryptionService()
        registry = EncryptionServiceRegistry(local_service)
        registry.register(noop)

        assert registry.for_decryption(local_service.metadata()) is local_service
        other_key = local_service.metadata().model_copy(update={"key_id": "sha256:other"})
        assert registry.for_decryption(other_key) is local_service
        unknown = noop.metadata().model_copy(update={"algorithm": "rot13"})
        assert registry.for_decryption(unknown) is local_service
        assert registry.for_decryption(noop.metadata()) is noop

    def test_set_primary(self, local_service):
        registry = EncryptionServiceRegistry(NoopEncryptionService())
        registry.set_primary(local_service)
        assert registry.for_encryption() is local_service


class TestFactory:
    """Tests for service selection from settings."""

    def test_noop_by_default(self):
        service = EncryptionServiceFactory(StoreSettings(_env_file=None)).create()
        assert service.algorithm == "noop"

    def test_local_key(self):
        settings = StoreSettings(_env_file=None, encryption_key=base64.b64encode(TEST_KEY).decode())
        service = EncryptionServiceFactory(settings).create()
        assert service.algorithm == "aes-256-gcm"

    def test_kms_preferred(self):
        kms = MagicMock()
        kms.algorithm = "aws-kms"
        settings = StoreSettings(
            _env_file=None,
            encryption_kms_key_id="alias/test",
            encryption_kms_region="us-east-1",
            encryption_key=base64.b64encode(TEST_KEY).decode(),
        )
        service = EncryptionServiceFactory(settings, kms_factory=lambda key_id, region: kms).create()
        assert service is kms
        kms.encrypt.assert_called_once_with("test")

    def test_kms_failure_falls_back_to_local(self):
        kms = MagicMock()
        kms.encrypt.side_effect = EncryptionError("no credentials", operation="encrypt")
        settings = StoreSettings(
            _env_file=None,
            encryption_kms_key_id="alias/test",
            encryption_kms_region="us-east-1",
            encryption_key=base64.b64encode(TEST_KEY).decode(),
        )
        service = EncryptionServiceFactory(settings, kms_factory=lambda key_id, region: kms).create()
        assert service.algorithm == "aes-256-gcm"

    def test_bad_local_key_falls_back_to_noop(self):
        settings = StoreSettings(_env_file=None, encryption_key=base64.b64encode(b"short").decode())
        assert EncryptionServiceFactory(settings).create().algorithm == "noop"

    def test_env_alias(self, monkeypatch):
        monkeypatch.setenv("AGENTAPI_ENCRYPTION_KEY", base64.b64encode(TEST_KEY).decode())
        settings = StoreSettings(_env_file=None)
        assert EncryptionServiceFactory(settings).create().key_id == key_fingerprint(TEST_KEY)

    def test_registry_reads_noop(self):
        settings = StoreSettings(_env_file=None, encryption_key=base64.b64encode(TEST_KEY).decode())
        registry = EncryptionServiceFactory(settings).create_registry()
        noop_value = NoopEncryptionService().encrypt("legacy")
        assert registry.for_decryption(noop_value.metadata).decrypt(noop_value) == "legacy"


class TestFieldCodec:
    """Tests for the field encryption codec."""

    def test_empty_stays_empty(self, codec):
        assert codec.encrypt("") == ""
        assert codec.decrypt("") == ""

    def test_round_trip(self, codec):
        stored = codec.encrypt("tok-123", "claude_code_oauth_token")
        assert stored != "tok-123"
        assert "tok-123" not in stored
        assert codec.decrypt(stored) == "tok-123"

    def test_plaintext_passes_through(self, codec):
        assert codec.decrypt("legacy-token") == "legacy-token"
        assert codec.decrypt('{"looks": "like json"}') == '{"looks": "like json"}'

    def test_noop_envelope_readable(self, codec, noop_codec):
        assert codec.decrypt(noop_codec.encrypt("value")) == "value"

    def test_failure_names_field(self, codec):
        foreign = FieldEncryptionCodec(EncryptionServiceRegistry(LocalEncryptionService(bytes(32))))
        stored = foreign.encrypt("value")
        with pytest.raises(EncryptionError) as exc_info:
            codec.decrypt(stored, "mcp_servers.github.env.TOKEN")
        assert exc_info.value.field == "mcp_servers.github.env.TOKEN"
        assert exc_info.value.operation == "decrypt"

    def test_maps_are_field_local(self, codec):
        encrypted = codec.encrypt_map({"A": "1", "B": ""}, "env")
        assert encrypted["B"] == ""
        mixed = {"A": encrypted["A"], "C": "plain"}
        assert codec.decrypt_map(mixed, "env") == {"A": "1", "C": "plain"}
