"""Credential Cipher.

AES-256-GCM encryption of a single secret string into one opaque,
base64-encoded blob laid out as ``salt || nonce || tag || ciphertext``.

Every call draws a fresh salt and nonce; the AES key is derived from the
master key and that salt with PBKDF2-HMAC-SHA512, so a human-chosen
master key still resists offline brute force.
"""

import base64
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from src.errors.exceptions import DecryptionFailure

SALT_SIZE = 64
NONCE_SIZE = 16
TAG_SIZE = 16
KEY_SIZE = 32  # 256 bits
PBKDF2_ITERATIONS = 100_000
HEADER_SIZE = SALT_SIZE + NONCE_SIZE + TAG_SIZE


def derive_key(master_key: str, salt: bytes) -> bytes:
    """Derive a per-blob AES key from the master key using PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=KEY_SIZE,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(master_key.encode("utf-8"))


@dataclass(frozen=True)
class EncryptedBlob:
    """The four segments of an encrypted secret."""

    salt: bytes
    nonce: bytes
    tag: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        return self.salt + self.nonce + self.tag + self.ciphertext

    def encode(self) -> str:
        """Render as the single base64 string stored at rest."""
        return base64.b64encode(self.to_bytes()).decode("ascii")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "EncryptedBlob":
        """Split raw bytes into segments; short input is malformed."""
        if len(raw) < HEADER_SIZE:
            raise DecryptionFailure(
                f"Encrypted blob is malformed: {len(raw)} bytes, need at least {HEADER_SIZE}"
            )
        nonce_end = SALT_SIZE + NONCE_SIZE
        return cls(
            salt=raw[:SALT_SIZE],
            nonce=raw[SALT_SIZE:nonce_end],
            tag=raw[nonce_end:HEADER_SIZE],
            ciphertext=raw[HEADER_SIZE:],
        )

    @classmethod
    def decode(cls, blob: str) -> "EncryptedBlob":
        """Parse the base64 form produced by :meth:`encode`."""
        if not isinstance(blob, str) or not blob:
            raise DecryptionFailure("Encrypted blob must be a non-empty string")
        try:
            raw = base64.b64decode(blob, validate=True)
        except ValueError as e:
            raise DecryptionFailure("Encrypted blob is not valid base64") from e
        return cls.from_bytes(raw)


def _check_master_key(master_key: str) -> None:
    if not master_key or not isinstance(master_key, str):
        raise ValueError("Master key must be a non-empty string")


def encrypt(plaintext: str, master_key: str) -> str:
    """Encrypt ``plaintext`` and return the base64 blob."""
    _check_master_key(master_key)
    if plaintext is None:
        raise ValueError("Plaintext cannot be None")

    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(master_key, salt)

    # AESGCM appends the tag to the ciphertext
    sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    blob = EncryptedBlob(
        salt=salt,
        nonce=nonce,
        tag=sealed[-TAG_SIZE:],
        ciphertext=sealed[:-TAG_SIZE],
    )
    return blob.encode()


def decrypt(blob: str, master_key: str) -> str:
    """Authenticate and decrypt a blob produced by :func:`encrypt`.

    Raises:
        DecryptionFailure: If the blob is malformed, was tampered with,
            or was sealed under a different master key.
    """
    _check_master_key(master_key)
    parts = EncryptedBlob.decode(blob)
    key = derive_key(master_key, parts.salt)

    try:
        plaintext = AESGCM(key).decrypt(parts.nonce, parts.ciphertext + parts.tag, None)
    except InvalidTag as e:
        raise DecryptionFailure("Invalid or tampered encrypted blob") from e

    return plaintext.decode("utf-8")
