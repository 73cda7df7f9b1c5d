"""Credential management: save, check, and delete the GitHub token.

The token is accepted once and never returned by any endpoint.
"""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_credential_service
from src.api.models import CredentialStatusResponse, MessageResponse, SaveCredentialsRequest
from src.services.credentials import CredentialService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/credentials", tags=["Credentials"])


@router.post("", response_model=MessageResponse)
async def save_credentials(
    body: SaveCredentialsRequest,
    service: CredentialService = Depends(get_credential_service),
):
    """Validate, encrypt, and store a GitHub personal access token."""
    await service.save_secret(body.token)
    return MessageResponse(message="Credentials saved successfully")


@router.get("", response_model=CredentialStatusResponse)
async def credential_status(
    service: CredentialService = Depends(get_credential_service),
):
    exists = await service.has_secret()
    return CredentialStatusResponse(
        exists=exists,
        message="Credentials configured" if exists else "No credentials found",
    )


@router.delete("", response_model=MessageResponse)
async def delete_credentials(
    service: CredentialService = Depends(get_credential_service),
):
    await service.delete_secret()
    return MessageResponse(message="Credentials deleted successfully")
