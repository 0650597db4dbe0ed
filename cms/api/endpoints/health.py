from datetime import datetime, UTC
from fastapi import APIRouter, Request
from pydantic import BaseModel
from cms.schemas.common import APIResponse

router = APIRouter()


class HealthInfo(BaseModel):
    timestamp: str
    version: str


@router.get("/health", response_model=APIResponse[HealthInfo], summary="Health check")
def health(request: Request):
    """Liveness probe; needs no authentication"""
    return APIResponse(
        message="API is healthy",
        data=HealthInfo(
            timestamp=datetime.now(UTC).isoformat(),
            version=request.app.state.settings.api_version,
        ),
    )
