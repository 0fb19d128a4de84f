"""Main API router aggregating all endpoint modules."""

from fastapi import APIRouter

from brand_forge.api.archive import router as archive_router
from brand_forge.api.assets import router as assets_router
from brand_forge.api.auth import router as auth_router
from brand_forge.api.brand import router as brand_router
from brand_forge.api.onboarding import router as onboarding_router
from brand_forge.api.video import router as video_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(assets_router, prefix="/brand/assets", tags=["assets"])
api_router.include_router(brand_router, prefix="/brand", tags=["brand"])
api_router.include_router(onboarding_router, prefix="/onboarding", tags=["onboarding"])
api_router.include_router(video_router, prefix="/video", tags=["video"])
api_router.include_router(archive_router, prefix="/archive", tags=["archive"])
