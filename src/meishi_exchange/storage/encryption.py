"""Symmetric encryption for stored contact payloads."""

import os
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from ..core.errors import EncryptionError
from ..utils.logging_config import get_module_logger

logger = get_module_logger(__name__)


class CardCipher:
    """Fernet (AES-128-CBC + HMAC-SHA256) wrapper for contact blobs."""

    def __init__(self, key: Union[str, bytes]):
        if isinstance(key, str):
            key = key.encode("ascii")
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise EncryptionError(f"Invalid encryption key: {e}") from e

    @classmethod
    def generate(cls) -> "CardCipher":
        """Create a cipher with a fresh random key."""
        return cls(Fernet.generate_key())

    @classmethod
    def from_key_file(cls, path: Path) -> "CardCipher":
        """
        Load the key stored at ``path``, creating it on first use.

        New key files are written with owner-only permissions.
        """
        path = Path(path)
        if path.exists():
            return cls(path.read_bytes().strip())

        path.parent.mkdir(parents=True, exist_ok=True)
        key = Fernet.generate_key()
        fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key)
        logger.info(f"Generated new encryption key at {path}")
        return cls(key)

    @classmethod
    def from_settings(cls, encryption_key: Optional[str], key_path: Path) -> "CardCipher":
        """Use an explicit key when configured, otherwise the key file."""
        if encryption_key:
            return cls(encryption_key)
        return cls.from_key_file(key_path)

    def encrypt(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        try:
            return self._fernet.decrypt(token)
        except InvalidToken as e:
            raise EncryptionError("Stored contacts could not be decrypted") from e
