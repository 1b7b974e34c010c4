"""Token endpoints: sign-in and activation token requests. Both are public."""
import logging

from fastapi import APIRouter, Depends

from ... import schemas
from ...services import Services
from ..dependencies import get_services

logger = logging.getLogger("issuetracker-core.api.tokens")

router = APIRouter(tags=["tokens"])


@router.post("/authentication", response_model=schemas.AuthenticationResponse, status_code=201)
async def create_authentication_token(
    body: schemas.AuthenticationRequest,
    services: Services = Depends(get_services),
):
    """Exchange email and password for a bearer credential valid for 24 hours."""
    token = await services.users.authenticate(body.email, body.password)
    return schemas.AuthenticationResponse(authentication_token=token)


@router.post("/activation", response_model=schemas.MessageResponse, status_code=202)
async def create_activation_token(
    body: schemas.ActivationTokenRequest,
    services: Services = Depends(get_services),
):
    """Email a new activation token to an unactivated account."""
    await services.users.create_activation_token(body.email)
    return schemas.MessageResponse(message="an email will be sent to you containing activation instructions")
