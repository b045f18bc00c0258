"""
System / health routes.
"""

from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.get("/policy")
async def policy():
    """Active evidence thresholds, for operators checking an env override took effect."""
    return settings.model_dump(exclude={"pil_max_image_pixels"})
