"""Campaign CRUD, background context, and the campaign view used by turns."""

import shutil
from pathlib import Path
from typing import Any

from dungeon_master.models import Campaign, CampaignView

from .characters import get_character
from .core import campaigns_dir, new_id, read_json, write_json

CONTEXT_UPLOAD_LIMIT = 100_000
CONTEXT_SEPARATOR = "\n\n--- NEW SOURCE ---\n\n"

# Wire keys a PATCH may change; everything else is fixed at creation.
_MUTABLE_FIELDS = {"name", "system", "aiModel", "customInstructions", "characterId"}


def _campaign_path(campaign_id: str) -> Path:
    return campaigns_dir() / f"{campaign_id}.json"


def _save(campaign: Campaign) -> None:
    write_json(
        _campaign_path(campaign.id),
        campaign.model_dump(mode="json", by_alias=True),
    )


def list_campaigns(user_id: str | None = None) -> list[Campaign]:
    """All campaigns, newest first, optionally only those owned by user_id."""
    results = [
        Campaign.model_validate(read_json(path))
        for path in campaigns_dir().glob("*.json")
    ]
    if user_id is not None:
        results = [c for c in results if c.user_id == user_id]
    return sorted(results, key=lambda c: c.created_at, reverse=True)


def get_campaign(campaign_id: str) -> Campaign | None:
    path = _campaign_path(campaign_id)
    if not path.is_file():
        return None
    return Campaign.model_validate(read_json(path))


def create_campaign(user_id: str, fields: dict[str, Any]) -> Campaign:
    """Create a campaign from wire-format fields. Unset/empty fields get defaults."""
    data = {k: v for k, v in fields.items() if k in _MUTABLE_FIELDS and v}
    campaign = Campaign.model_validate({**data, "id": new_id(), "userId": user_id})
    _save(campaign)
    (campaigns_dir() / campaign.id).mkdir(exist_ok=True)
    return campaign


def update_campaign(campaign_id: str, fields: dict[str, Any]) -> Campaign | None:
    """Update mutable campaign fields (wire names). Returns the updated campaign."""
    campaign = get_campaign(campaign_id)
    if campaign is None:
        return None
    data = campaign.model_dump(mode="json", by_alias=True)
    for key, value in fields.items():
        if key in _MUTABLE_FIELDS:
            data[key] = value
    updated = Campaign.model_validate(data)
    _save(updated)
    return updated


def append_context(campaign_id: str, text: str) -> Campaign | None:
    """Append a source text to the campaign's knowledge base."""
    campaign = get_campaign(campaign_id)
    if campaign is None:
        return None
    chunk = text[:CONTEXT_UPLOAD_LIMIT]
    context = f"{campaign.context}{CONTEXT_SEPARATOR}{chunk}" if campaign.context else chunk
    updated = campaign.model_copy(update={"context": context})
    _save(updated)
    return updated


def delete_campaign(campaign_id: str) -> bool:
    """Delete a campaign and its messages."""
    path = _campaign_path(campaign_id)
    if not path.is_file():
        return False
    path.unlink()
    child_dir = campaigns_dir() / campaign_id
    if child_dir.is_dir():
        shutil.rmtree(child_dir)
    return True


def get_campaign_view(campaign_id: str) -> CampaignView | None:
    """Campaign + linked character + messages in creation order."""
    from .messages import get_messages

    campaign = get_campaign(campaign_id)
    if campaign is None:
        return None
    character = get_character(campaign.character_id) if campaign.character_id else None
    return CampaignView(
        campaign=campaign,
        character=character,
        messages=get_messages(campaign_id),
    )
