"""Core domain models.

The orchestrator, interpreter and storage all operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
Python attributes are snake_case; the JSON on disk and over the wire keeps
the camelCase keys the client expects (maxHp, aiModel, characterId, ...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

Role = Literal["user", "assistant", "system"]

# Keys a model-issued <<<UPDATE>>> block may change, in wire spelling.
CHARACTER_UPDATE_FIELDS = (
    "hp", "maxHp", "ac",
    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma",
    "pp", "gp", "ep", "sp", "cp",
    "inventory", "level", "experience",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Message(_Record):
    """A single entry in a campaign's append-only chat log."""

    id: str
    role: Role
    content: str
    campaign_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Character(_Record):
    """A player character sheet."""

    id: str
    name: str
    race: str = ""
    char_class: str = Field(default="", alias="class")
    alignment: str = ""
    level: int = 1
    experience: int = 0
    hp: int = 10
    max_hp: int = 10
    ac: int = 10
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10
    pp: int = 0
    gp: int = 0
    ep: int = 0
    sp: int = 0
    cp: int = 0
    inventory: str = ""
    background: str = ""
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


class CharacterUpdate(_Record):
    """Whitelisted partial update proposed by the model.

    Unknown keys are ignored. Values are validated strictly, so `true` or
    "8" is rejected for a numeric field rather than coerced. Only fields that
    were actually present in the block end up in model_dump(exclude_unset=True).
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", strict=True
    )

    hp: int | None = None
    max_hp: int | None = None
    ac: int | None = None
    strength: int | None = None
    dexterity: int | None = None
    constitution: int | None = None
    intelligence: int | None = None
    wisdom: int | None = None
    charisma: int | None = None
    pp: int | None = None
    gp: int | None = None
    ep: int | None = None
    sp: int | None = None
    cp: int | None = None
    inventory: str | None = None
    level: int | None = None
    experience: int | None = None

    @field_validator("inventory", mode="before")
    @classmethod
    def _join_inventory(cls, value):
        # Models sometimes send the inventory as a list of items.
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return value

    def changes(self) -> dict:
        """Snake_case field → value for every key the block set to non-null."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Campaign(_Record):
    """Campaign metadata stored on disk (messages live in their own file)."""

    id: str
    name: str = "New Adventure"
    system: str = "AD&D 1e"
    ai_model: str = DEFAULT_MODEL
    custom_instructions: str | None = None
    context: str | None = None
    user_id: str
    character_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class CampaignView(_Record):
    """A campaign with its linked character and ordered message history."""

    campaign: Campaign
    character: Character | None = None
    messages: list[Message] = Field(default_factory=list)
