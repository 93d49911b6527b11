"""Tests for FieldEncryptor (Fernet encryption of stored guidance)."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from mindscreen.core.storage.encryption import EncryptionError, FieldEncryptor


@pytest.fixture
def encryptor() -> FieldEncryptor:
    return FieldEncryptor(Fernet.generate_key().decode())


class TestRoundTrip:
    def test_bilingual_text_round_trip(self, encryptor: FieldEncryptor):
        data = {"en": "Take a short walk.", "id": "Luangkan waktu untuk jalan santai."}
        token = encryptor.encrypt(data)
        assert isinstance(token, str)
        assert "walk" not in token
        assert encryptor.decrypt(token) == data

    def test_non_ascii_preserved(self, encryptor: FieldEncryptor):
        data = {"en": "café", "id": "kopi ☕"}
        assert encryptor.decrypt(encryptor.encrypt(data)) == data

    def test_none_encrypts_to_empty(self, encryptor: FieldEncryptor):
        assert encryptor.encrypt(None) == ""
        assert encryptor.decrypt("") is None

    def test_same_value_gives_distinct_tokens(self, encryptor: FieldEncryptor):
        assert encryptor.encrypt({"en": "x"}) != encryptor.encrypt({"en": "x"})


class TestKeys:
    def test_empty_key_rejected(self):
        with pytest.raises(EncryptionError, match="must not be empty"):
            FieldEncryptor("")

    def test_invalid_key_rejected(self):
        with pytest.raises(EncryptionError, match="Invalid encryption key"):
            FieldEncryptor("not-a-fernet-key")

    def test_wrong_key_cannot_decrypt(self, encryptor: FieldEncryptor):
        token = encryptor.encrypt({"en": "secret"})
        other = FieldEncryptor(Fernet.generate_key().decode())
        with pytest.raises(EncryptionError, match="Decryption failed"):
            other.decrypt(token)

    def test_ephemeral_key_works(self):
        enc = FieldEncryptor.ephemeral()
        assert enc.decrypt(enc.encrypt({"en": "a"})) == {"en": "a"}

    def test_unserializable_value(self, encryptor: FieldEncryptor):
        with pytest.raises(EncryptionError, match="Encryption failed"):
            encryptor.encrypt({"bad": object()})
