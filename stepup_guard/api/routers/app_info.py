from fastapi import APIRouter, Depends

from stepup_guard.api.dependencies import get_settings
from stepup_guard.core.config import Settings
from stepup_guard.domain.schemas import HealthResponse, VersionResponse

router = APIRouter(prefix="/app", tags=["App"])


@router.get("/version", response_model=VersionResponse)
async def version(config: Settings = Depends(get_settings)):
    return VersionResponse(name=config.APP_NAME, version=config.APP_VERSION)


@router.get("/health-check", response_model=HealthResponse)
async def health_check():
    # Sin dependencias externas que revisar: el núcleo es puro
    return HealthResponse()
