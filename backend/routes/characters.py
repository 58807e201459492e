"""Character sheet endpoints."""

import random

from fastapi import APIRouter, Depends, HTTPException

from backend import storage
from dungeon_master.models import Character

from .deps import get_user_id
from .models import CreateCharacter

router = APIRouter()


def _owned_character(character_id: str, user_id: str) -> Character:
    character = storage.get_character(character_id)
    if not character or character.user_id != user_id:
        raise HTTPException(404, "Character not found")
    return character


@router.get("/characters")
async def list_characters(user_id: str = Depends(get_user_id)):
    """List the user's characters, newest first."""
    return [c.model_dump(mode="json", by_alias=True) for c in storage.list_characters(user_id)]


@router.get("/characters/{character_id}")
async def get_character(character_id: str, user_id: str = Depends(get_user_id)):
    """Get a single character sheet."""
    return _owned_character(character_id, user_id).model_dump(mode="json", by_alias=True)


@router.post("/characters")
async def create_character(body: CreateCharacter, user_id: str = Depends(get_user_id)):
    """Create a character. Every new adventurer starts with 50-149 gp."""
    fields = {
        "name": body.name,
        "race": body.race,
        "class": body.char_class,
        "alignment": body.alignment,
        "hp": body.hp,
        "maxHp": body.maxHp,
        "ac": body.ac,
        "background": body.background,
        "gp": random.randint(50, 149),
        **body.stats.model_dump(),
    }
    character = storage.create_character(user_id, fields)
    return character.model_dump(mode="json", by_alias=True)


@router.delete("/characters/{character_id}")
async def delete_character(character_id: str, user_id: str = Depends(get_user_id)):
    """Delete a character; campaigns that used it are kept but un-linked."""
    _owned_character(character_id, user_id)
    storage.delete_character(character_id)
    return {"ok": True}
