"""HTTP routes of the confirmation listener."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status
from loguru import logger
from pydantic import BaseModel

from pgpvalidation.application.nonce import nonce_from_string
from pgpvalidation.domain.errors import InvalidNonceError
from pgpvalidation.infrastructure import get_settings

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class ConfirmResponse(BaseModel):
    """Acknowledgement of a well-formed confirmation."""

    status: str
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str


# ============================================================================
# Routes
# ============================================================================


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_settings().app_version,
    )


@router.get(
    "/confirm/{nonce}",
    response_model=ConfirmResponse,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["confirmation"],
)
async def confirm(nonce: str, request: Request) -> ConfirmResponse:
    """Accept a confirmation link click.

    Only the format of the nonce is checked here. Whether it is known is
    decided later by the confirmation worker, so the response does not
    reveal pending requests.
    """
    client = request.client.host if request.client else "unknown"
    try:
        decoded = nonce_from_string(nonce)
    except InvalidNonceError as e:
        logger.warning(f"BAD REQUEST from {client} to {request.url.path}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    logger.info(f"ACCEPTED from {client} to {request.url.path}")
    request.app.state.services.worker.submit(decoded)
    return ConfirmResponse(
        status="accepted",
        message="Thank you. If the link was valid, your signed key is on its way.",
    )
