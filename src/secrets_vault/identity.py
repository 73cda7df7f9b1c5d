"""Identity hashing for cache partition keys.

Cache keys are derived from a one-way digest of the credential so the
credential itself, or any recognizable piece of it, never becomes a key.
"""

import hashlib

PARTITION_KEY_LENGTH = 16


def derive_partition_key(secret: str, length: int = PARTITION_KEY_LENGTH) -> str:
    """Return the first ``length`` hex chars of SHA-256(secret)."""
    if not secret:
        raise ValueError("Cannot derive a partition key from an empty secret")
    if not 8 <= length <= 64:
        raise ValueError("Partition key length must be between 8 and 64")
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:length]
