"""Campaign CRUD + knowledge base + chat turn and dice roll endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend import storage
from dungeon_master.errors import (
    AuthenticationMissing,
    CampaignNotFound,
    InvalidDiceSpec,
    ModelUnavailable,
)
from dungeon_master.models import Campaign
from dungeon_master.pipeline import GameMaster

from .deps import get_game_master, get_user_id
from .models import ContextBody, CreateCampaign, MessageBody, RollBody, UpdateCampaign

logger = logging.getLogger(__name__)

router = APIRouter()


def _dump(model) -> dict | None:
    if model is None:
        return None
    return model.model_dump(mode="json", by_alias=True)


def _owned_campaign(campaign_id: str, user_id: str) -> Campaign:
    campaign = storage.get_campaign(campaign_id)
    if not campaign or campaign.user_id != user_id:
        raise HTTPException(404, "Campaign not found")
    return campaign


def _check_character(character_id: str | None, user_id: str) -> None:
    if not character_id:
        return
    character = storage.get_character(character_id)
    if not character or character.user_id != user_id:
        raise HTTPException(404, "Character not found")


@router.get("/campaigns")
async def list_campaigns(user_id: str = Depends(get_user_id)):
    """List the user's campaigns, newest first."""
    return [_dump(c) for c in storage.list_campaigns(user_id)]


@router.post("/campaigns")
async def create_campaign(body: CreateCampaign, user_id: str = Depends(get_user_id)):
    """Create a campaign, optionally linked to one of the user's characters."""
    _check_character(body.characterId, user_id)
    campaign = storage.create_campaign(user_id, body.model_dump())
    return _dump(campaign)


@router.get("/campaigns/{campaign_id}")
async def get_campaign(campaign_id: str, user_id: str = Depends(get_user_id)):
    """Campaign with its character and ordered messages."""
    _owned_campaign(campaign_id, user_id)
    return _dump(storage.get_campaign_view(campaign_id))


@router.patch("/campaigns/{campaign_id}")
async def update_campaign(
    campaign_id: str, body: UpdateCampaign, user_id: str = Depends(get_user_id)
):
    """Update campaign fields (name, system, aiModel, customInstructions, characterId)."""
    _owned_campaign(campaign_id, user_id)
    fields = body.model_dump(exclude_unset=True)
    _check_character(fields.get("characterId"), user_id)
    return _dump(storage.update_campaign(campaign_id, fields))


@router.delete("/campaigns/{campaign_id}")
async def delete_campaign(campaign_id: str, user_id: str = Depends(get_user_id)):
    """Delete a campaign and all its messages."""
    _owned_campaign(campaign_id, user_id)
    storage.delete_campaign(campaign_id)
    return {"ok": True}


@router.post("/campaigns/{campaign_id}/context")
async def upload_context(
    campaign_id: str, body: ContextBody, user_id: str = Depends(get_user_id)
):
    """Append source text to the campaign's knowledge base."""
    _owned_campaign(campaign_id, user_id)
    if not body.text.strip():
        raise HTTPException(400, "Context text required")
    storage.append_context(campaign_id, body.text)
    preview = body.text[:200]
    return {"ok": True, "preview": preview + "..." if len(body.text) > 200 else preview}


@router.post("/campaigns/{campaign_id}/message")
async def send_message(
    campaign_id: str,
    body: MessageBody,
    user_id: str = Depends(get_user_id),
    gm: GameMaster = Depends(get_game_master),
):
    """Send a player message and run one game-master turn."""
    _owned_campaign(campaign_id, user_id)
    if not body.content.strip():
        raise HTTPException(400, "Content required")

    try:
        result = await gm.take_turn(campaign_id, body.content, api_key=body.api_key)
    except CampaignNotFound:
        raise HTTPException(404, "Campaign not found")
    except AuthenticationMissing as e:
        raise HTTPException(401, str(e))
    except ModelUnavailable as e:
        logger.error("campaign=%s turn failed: %s", campaign_id, e)
        raise HTTPException(502, "The Dungeon Master is unavailable, try again")

    return {"message": _dump(result.message), "character": _dump(result.character)}


@router.post("/campaigns/{campaign_id}/roll")
async def roll_dice(
    campaign_id: str,
    body: RollBody,
    user_id: str = Depends(get_user_id),
    gm: GameMaster = Depends(get_game_master),
):
    """Roll a die server-side, log it, and let the Dungeon Master react."""
    _owned_campaign(campaign_id, user_id)

    try:
        result = await gm.roll(campaign_id, body.dice, api_key=body.api_key)
    except InvalidDiceSpec as e:
        raise HTTPException(400, str(e))
    except CampaignNotFound:
        raise HTTPException(404, "Campaign not found")
    except ModelUnavailable as e:
        logger.error("campaign=%s roll reply failed: %s", campaign_id, e)
        raise HTTPException(502, "The Dungeon Master is unavailable, try again")

    return {
        "roll": {"die": result.roll.die, "result": result.roll.result},
        "message": _dump(result.message),
        "reply": _dump(result.reply),
        "character": _dump(result.character),
    }
