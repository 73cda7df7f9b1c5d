"""Credential format validation."""

import re
from typing import Optional

from src.errors.config import ErrorCode
from src.errors.exceptions import ValidationError

# Classic PAT: ghp_ + 36 alphanumerics. Fine-grained PAT: github_pat_ + [A-Za-z0-9_]+
GITHUB_TOKEN_PATTERN = re.compile(r"^(ghp_[a-zA-Z0-9]{36}|github_pat_[a-zA-Z0-9_]+)$")


def validate_token_format(token: Optional[str]) -> str:
    """Validate a GitHub personal access token.

    Returns:
        The token unchanged.

    Raises:
        ValidationError: If the token is missing or malformed.
    """
    if not token:
        raise ValidationError(
            "Token is required",
            error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            field="token",
        )

    if not isinstance(token, str) or not GITHUB_TOKEN_PATTERN.fullmatch(token):
        raise ValidationError(
            "Invalid token format. Expected GitHub PAT (ghp_... or github_pat_...)",
            error_code=ErrorCode.INVALID_TOKEN_FORMAT,
            field="token",
        )

    return token
