"""Cache revalidation endpoint.

Lets a trusted caller (a deploy hook, an external admin tool) discard
cached storefront reads by tag or by request path. Authenticated with the
shared ``x-revalidation-secret`` header instead of the admin API key.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, Request

from app.api.schemas import RevalidateResponse
from app.application.revalidation_service import RevalidationService
from app.domain.exceptions import ValidationError

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Revalidation"])

SECRET_HEADER = "x-revalidation-secret"


@router.post(
    "/revalidate",
    response_model=RevalidateResponse,
    response_model_exclude_none=True,
    summary="Invalidate cached reads",
)
async def revalidate(request: Request) -> dict[str, Any]:
    """Invalidate cached reads by tag or path.

    The secret is checked before the body is read.

    Raises:
        MisconfiguredError: If no secret is configured (500).
        UnauthorizedError: If the secret is missing or wrong (401).
        ValidationError: If the body is malformed (400).
    """
    service: RevalidationService = request.app.state.revalidation
    service.authorize(request.headers.get(SECRET_HEADER))

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e

    return service.revalidate(payload).to_dict()
