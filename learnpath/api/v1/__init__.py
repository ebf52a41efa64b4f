"""
API v1 routes.
"""

from fastapi import APIRouter

from learnpath.api.v1 import ai, auth, modules, pathways

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(pathways.router, prefix="/pathways", tags=["Pathways"])
router.include_router(modules.router, prefix="/modules", tags=["Modules"])
router.include_router(ai.router, prefix="/ai", tags=["Generative Content"])
