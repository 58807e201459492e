"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, models, settings), campaigns (CRUD,
knowledge base, chat turn, dice roll), characters. Campaign and character
endpoints are scoped to the user named in the X-User-Id header; records
owned by anyone else answer 404.
"""

from fastapi import APIRouter

from .campaigns import router as campaigns_router
from .characters import router as characters_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(campaigns_router)
router.include_router(characters_router)
