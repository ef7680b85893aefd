"""HTTP routes."""

from fastapi import APIRouter

from nasgate.api import admin, auth, browse, download, health, language, pages, settings, setup

router = APIRouter()
router.include_router(pages.router, tags=["pages"])
router.include_router(setup.router, prefix="/api/setup", tags=["setup"])
router.include_router(auth.router, prefix="/api/auth", tags=["auth"])
router.include_router(admin.router, prefix="/api/admin", tags=["admin"])
router.include_router(settings.router, prefix="/api/settings", tags=["settings"])
router.include_router(language.router, prefix="/api", tags=["language"])
router.include_router(browse.router, prefix="/api/browse", tags=["browse"])
router.include_router(health.router, prefix="/api/health", tags=["health"])
router.include_router(download.router, prefix="/download", tags=["download"])
