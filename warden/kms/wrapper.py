"""Symmetric key wrappers (Fernet)."""

import hashlib
import hmac
from enum import Enum

from cryptography.fernet import Fernet, InvalidToken


class KeyPurpose(str, Enum):
    """What a scope key is used for."""

    DATABASE = "database"
    OPLOG = "oplog"
    TOKENS = "tokens"
    SESSIONS = "sessions"


class KmsError(Exception):
    """Raised when a key cannot be resolved or data cannot be decrypted."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class Wrapper:
    """Encrypts and decrypts data with a single scope key.

    Keys are url-safe base64 encoded 32-byte Fernet keys.
    """

    def __init__(self, key_id: str, key: bytes | str) -> None:
        if isinstance(key, str):
            key = key.encode()
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise KmsError(f"invalid key for {key_id}", cause=e) from e
        self._key = key
        self.key_id = key_id

    def encrypt(self, plaintext: bytes) -> bytes:
        return self._fernet.encrypt(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        try:
            return self._fernet.decrypt(ciphertext)
        except InvalidToken as e:
            raise KmsError(f"unable to decrypt with key {self.key_id}", cause=e) from e

    def hmac(self, data: bytes) -> bytes:
        """HMAC-SHA256 of ``data`` keyed with this wrapper's key."""
        return hmac_token(self._key, data)

    def __repr__(self) -> str:
        return f"Wrapper(key_id={self.key_id!r})"


def hmac_token(key: bytes, token: bytes) -> bytes:
    """Derive the HMAC join key for a token.

    The HMAC correlates a token with the credentials issued under it without
    storing the plaintext token anywhere it could be read back.
    """
    return hmac.new(key, token, hashlib.sha256).digest()
