"""Health check, model list, and settings endpoints."""

from fastapi import APIRouter

from backend import storage

from .models import UpdateSettings

router = APIRouter()

# Offered in the campaign form; the first entry is the default/fallback model.
MODELS = [
    {"id": "claude-haiku-4-5-20251001", "label": "Claude Haiku 4.5 (Fast)"},
    {"id": "claude-sonnet-4-5-20250929", "label": "Claude Sonnet 4.5 (Smart)"},
    {"id": "claude-opus-4-5-20251101", "label": "Claude Opus 4.5 (Powerful)"},
]


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/models")
async def list_models():
    """Models a campaign can be played with, plus the configured default."""
    return {"models": MODELS, "default": storage.get_config()["default_model"]}


@router.get("/settings")
async def get_settings():
    """Get global app settings."""
    return storage.get_config()


@router.patch("/settings")
async def update_settings(body: UpdateSettings):
    """Update global app settings (partial merge)."""
    return storage.update_config(body.model_dump(exclude_none=True))
