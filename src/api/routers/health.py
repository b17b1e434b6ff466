from fastapi import APIRouter
from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness probe"""
    return {
        "status": "ok",
        "app": settings.app_name,
        "env": settings.app_env,
        "ocr_language": settings.ocr_tesseract_language,
    }
