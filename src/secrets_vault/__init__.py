"""Credential vaulting: at-rest encryption, storage, and identity hashing."""

from .cipher import (
    EncryptedBlob,
    decrypt,
    encrypt,
)
from .identity import (
    PARTITION_KEY_LENGTH,
    derive_partition_key,
)
from .store import (
    CredentialStore,
)
from .validators import (
    GITHUB_TOKEN_PATTERN,
    validate_token_format,
)

__all__ = [
    # Cipher
    "EncryptedBlob",
    "decrypt",
    "encrypt",
    # Identity
    "PARTITION_KEY_LENGTH",
    "derive_partition_key",
    # Store
    "CredentialStore",
    # Validators
    "GITHUB_TOKEN_PATTERN",
    "validate_token_format",
]
