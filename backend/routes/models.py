"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class CreateCampaign(BaseModel):
    name: str = ""
    system: str = ""
    aiModel: str = ""
    characterId: str | None = None
    customInstructions: str | None = None


class UpdateCampaign(BaseModel):
    name: str | None = None
    system: str | None = None
    aiModel: str | None = None
    characterId: str | None = None
    customInstructions: str | None = None


class MessageBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    api_key: str | None = Field(default=None, alias="apiKey")


class RollBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dice: str
    api_key: str | None = Field(default=None, alias="apiKey")


class ContextBody(BaseModel):
    text: str


class Stats(BaseModel):
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10


class CreateCharacter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    race: str = ""
    char_class: str = Field(default="", alias="class")
    alignment: str = ""
    stats: Stats = Field(default_factory=Stats)
    hp: int = 10
    maxHp: int = 10
    ac: int = 10
    background: str = ""


class UpdateSettings(BaseModel):
    default_model: str | None = None
    max_output_tokens: int | None = Field(default=None, gt=0)
    timeout_seconds: float | None = Field(default=None, gt=0)
    api_url: str | None = None
