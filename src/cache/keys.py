"""Cache key naming conventions for RepoDeck.

Keys embed a partition key derived from the credential hash, never the
credential itself.
"""

# Aggregated repository list for one credential (TTL: 5min)
REPOSITORIES = "repositories:{partition_key}"


def repositories_key(partition_key: str) -> str:
    return REPOSITORIES.format(partition_key=partition_key)
