"""Tests for secret encryption at rest."""

from cryptography.fernet import Fernet

from carelog.services.encryption import EncryptionService


def test_roundtrip():
    svc = EncryptionService(key=Fernet.generate_key().decode())
    secret = "sk-test-1234567890"
    encrypted = svc.encrypt(secret)
    assert encrypted != secret
    assert svc.decrypt(encrypted) == secret


def test_empty_values_stay_empty():
    svc = EncryptionService(key=Fernet.generate_key().decode())
    assert svc.encrypt("") == ""
    assert svc.decrypt("") == ""


def test_different_keys_produce_different_ciphertext():
    svc1 = EncryptionService(key=Fernet.generate_key().decode())
    svc2 = EncryptionService(key=Fernet.generate_key().decode())
    assert svc1.encrypt("hello") != svc2.encrypt("hello")


def test_foreign_ciphertext_decrypts_to_empty():
    """A key rotated without re-encrypting reads as 'no secret stored'."""
    svc1 = EncryptionService(key=Fernet.generate_key().decode())
    svc2 = EncryptionService(key=Fernet.generate_key().decode())
    assert svc2.decrypt(svc1.encrypt("sk-live")) == ""


def test_missing_key_uses_ephemeral_key(monkeypatch):
    monkeypatch.setattr("carelog.services.encryption.settings.SECRET_ENCRYPTION_KEY", "")
    svc = EncryptionService()
    assert svc.decrypt(svc.encrypt("value")) == "value"
