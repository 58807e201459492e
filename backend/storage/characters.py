"""Character sheet file storage (one JSON file per character)."""

import logging
from pathlib import Path
from typing import Any

from dungeon_master.models import Character

from .core import campaigns_dir, characters_dir, new_id, read_json, write_json

logger = logging.getLogger(__name__)


def _character_path(character_id: str) -> Path:
    return characters_dir() / f"{character_id}.json"


def _save(character: Character) -> None:
    write_json(
        _character_path(character.id),
        character.model_dump(mode="json", by_alias=True),
    )


def list_characters(user_id: str | None = None) -> list[Character]:
    """All characters, newest first, optionally only those owned by user_id."""
    results = [
        Character.model_validate(read_json(path))
        for path in characters_dir().glob("*.json")
    ]
    if user_id is not None:
        results = [c for c in results if c.user_id == user_id]
    return sorted(results, key=lambda c: c.created_at, reverse=True)


def get_character(character_id: str) -> Character | None:
    path = _character_path(character_id)
    if not path.is_file():
        return None
    return Character.model_validate(read_json(path))


def create_character(user_id: str, fields: dict[str, Any]) -> Character:
    """Create a character from wire-format fields (maxHp, class, ...)."""
    data = {k: v for k, v in fields.items() if k not in ("id", "userId", "user_id")}
    character = Character.model_validate({**data, "id": new_id(), "userId": user_id})
    _save(character)
    return character


def update_character(character_id: str, fields: dict[str, Any]) -> Character | None:
    """Partial update by snake_case field name. Unmentioned fields stay as they are.

    Values replace the stored ones wholesale (inventory is never merged).
    Returns the updated character, or None if it does not exist.
    """
    character = get_character(character_id)
    if character is None:
        return None
    merged = character.model_dump()
    merged.update({k: v for k, v in fields.items() if k in Character.model_fields})
    updated = Character.model_validate(merged)
    _save(updated)
    return updated


def delete_character(character_id: str) -> bool:
    """Delete a character and un-link it from every campaign that uses it."""
    path = _character_path(character_id)
    if not path.is_file():
        return False
    for campaign_path in campaigns_dir().glob("*.json"):
        campaign = read_json(campaign_path)
        if campaign.get("characterId") == character_id:
            campaign["characterId"] = None
            write_json(campaign_path, campaign)
            logger.info("Unlinked character %s from campaign %s", character_id, campaign["id"])
    path.unlink()
    return True
