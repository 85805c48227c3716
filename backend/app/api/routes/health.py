from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Liveness probe")
def healthcheck(settings: Settings = Depends(get_settings)) -> dict[str, str | bool]:
    return {"status": "ok", "data_available": settings.data_path.exists()}
