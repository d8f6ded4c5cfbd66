"""Credential vault for connection secrets at rest.

AES-256-GCM with a key derived once per process from an operator-provided
secret via PBKDF2-HMAC-SHA256 and a fixed application salt. The derived key
is stable across restarts and is the only state shared between concurrent
callers; it is never mutated after construction.

Ciphertext layout (base64 encoded)::

    salt (64 bytes) || iv (16 bytes) || tag (16 bytes) || payload

The leading salt block is random per record and is bound to the payload as
GCM associated data, so tampering with any byte fails authentication. Key
derivation never uses it.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from fastmcp.utilities.logging import get_logger

from querygenie_mcp.errors import ConfigurationError, DecryptionError
from querygenie_mcp.models import ConnectionConfig, Credentials

_logger = get_logger(__name__)

SALT_LENGTH: Final[int] = 64
IV_LENGTH: Final[int] = 16
TAG_LENGTH: Final[int] = 16
KEY_LENGTH: Final[int] = 32
KDF_ITERATIONS: Final[int] = 100_000
APPLICATION_SALT: Final[bytes] = hashlib.sha256(b"querygenie-salt").digest()
SECRET_ENV_VAR: Final[str] = "QUERYGENIE_ENCRYPTION_SECRET"


def derive_key(secret: str) -> bytes:
    """Derive the 256-bit vault key from the operator secret."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=APPLICATION_SALT,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(secret.encode("utf-8"))


def mask_secret(text: str, visible_chars: int = 4) -> str:
    """Mask sensitive text for display, keeping a few characters at each end."""
    if len(text) <= visible_chars * 2:
        return "*" * len(text)
    masked = "*" * max(8, len(text) - visible_chars * 2)
    return f"{text[:visible_chars]}{masked}{text[-visible_chars:]}"


class CredentialVault:
    """Encrypts and decrypts connection secrets.

    Pure with respect to its inputs and key material; safe for concurrent use.
    """

    def __init__(self, secret: str) -> None:
        if not secret:
            msg = "Vault secret must be a non-empty string"
            raise ConfigurationError(msg)
        self._aead = AESGCM(derive_key(secret))

    @classmethod
    def from_env(cls) -> CredentialVault:
        """Build a vault from ``QUERYGENIE_ENCRYPTION_SECRET``.

        Raises:
            ConfigurationError: If the environment variable is not set
        """
        secret = os.getenv(SECRET_ENV_VAR)
        if not secret:
            msg = f"{SECRET_ENV_VAR} environment variable not set"
            raise ConfigurationError(msg)
        _logger.info("Credential vault key derived from %s", SECRET_ENV_VAR)
        return cls(secret)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` with a fresh random IV."""
        salt = os.urandom(SALT_LENGTH)
        iv = os.urandom(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), salt)
        # AESGCM appends the tag; the stored layout places it before the payload.
        payload, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return base64.b64encode(salt + iv + tag + payload).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a value produced by `encrypt`.

        Raises:
            DecryptionError: On malformed input or authentication failure
        """
        try:
            combined = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = "Credential ciphertext is not valid base64"
            raise DecryptionError(msg) from exc

        header = SALT_LENGTH + IV_LENGTH + TAG_LENGTH
        if len(combined) < header:
            msg = "Credential ciphertext is truncated"
            raise DecryptionError(msg)

        salt = combined[:SALT_LENGTH]
        iv = combined[SALT_LENGTH : SALT_LENGTH + IV_LENGTH]
        tag = combined[SALT_LENGTH + IV_LENGTH : header]
        payload = combined[header:]
        try:
            plain = self._aead.decrypt(iv, payload + tag, salt)
        except InvalidTag as exc:
            msg = "Credential ciphertext failed authentication"
            raise DecryptionError(msg) from exc
        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = "Decrypted credential is not valid UTF-8"
            raise DecryptionError(msg) from exc

    def decrypt_optional(self, ciphertext: str | None) -> str | None:
        """Decrypt a nullable field; ``None`` and empty strings pass through as ``None``."""
        if not ciphertext:
            return None
        return self.decrypt(ciphertext)

    def credentials_for(self, config: ConnectionConfig) -> Credentials:
        """Decrypt the secret carried by a connection record for one call.

        Raises:
            DecryptionError: When the stored secret cannot be decrypted
        """
        return Credentials(
            password=self.decrypt_optional(config.encrypted_password),
            connection_string=self.decrypt_optional(config.encrypted_connection_string),
        )
