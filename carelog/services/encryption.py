"""
Application-layer encryption for secrets stored in the database.

Assistant API keys entered by staff are kept Fernet-encrypted at rest; the
key comes from the environment, never from the database.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken

from carelog.config import settings

logger = logging.getLogger(__name__)


class EncryptionService:
    """Wraps Fernet symmetric encryption for secret columns."""

    def __init__(self, key: str | None = None):
        raw_key = key or settings.SECRET_ENCRYPTION_KEY
        if raw_key:
            self._fernet = Fernet(raw_key.encode() if isinstance(raw_key, str) else raw_key)
        else:
            # Secrets written with an ephemeral key are unreadable after a restart.
            logger.warning("SECRET_ENCRYPTION_KEY not set; using an ephemeral key")
            self._fernet = Fernet(Fernet.generate_key())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string and return base64-encoded ciphertext."""
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt base64-encoded ciphertext back to plaintext."""
        if not ciphertext:
            return ""
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Stored secret could not be decrypted with the current key")
            return ""


encryption = EncryptionService()
