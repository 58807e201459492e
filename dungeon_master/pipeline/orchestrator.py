"""Turn orchestrator: runs one player turn end-to-end.

Turn flow:
  1. Load the campaign with its character and message history.
  2. Append the player's message to the log (input is never lost).
  3. Resolve the API key; fail with AuthenticationMissing before any call.
  4. Assemble the system prompt and replayed turns.
  5. Call the campaign's model; on failure retry once on the default model.
  6. Interpret the reply: resolve rolls, apply the update block.
  7. Append the cleaned reply and return it with the updated character.

A player-initiated roll (roll()) is the same turn seeded with a synthesized
"*Rolls d20... Result: 14*" message and a system prompt naming the result.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Protocol

from dungeon_master.dice import Roll, parse_die, roll_die
from dungeon_master.errors import (
    AuthenticationMissing,
    CampaignNotFound,
    ModelUnavailable,
)
from dungeon_master.llm import LLM, LLMError
from dungeon_master.models import DEFAULT_MODEL, CampaignView, Character, Message

from .directives import interpret
from .prompts import AssembledPrompt, assemble_prompt

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 1024


class CampaignStore(Protocol):
    """What the orchestrator needs from persistence."""

    def get_campaign_view(self, campaign_id: str) -> CampaignView | None: ...
    def append_message(self, campaign_id: str, role: str, content: str) -> Message: ...
    def update_character(self, character_id: str, fields: dict) -> Character | None: ...


@dataclass(frozen=True)
class GameMasterConfig:
    default_model: str = DEFAULT_MODEL
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    fallback_api_key: str | None = None


@dataclass
class TurnResult:
    message: Message
    character: Character | None = None


@dataclass
class RollResult:
    roll: Roll
    message: Message
    reply: Message | None = None
    character: Character | None = None


class GameMaster:
    def __init__(
        self,
        store: CampaignStore,
        llm: LLM,
        config: GameMasterConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._config = config or GameMasterConfig()
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def take_turn(
        self, campaign_id: str, content: str, api_key: str | None = None
    ) -> TurnResult:
        """Execute one player turn and return the persisted reply."""
        view = self._load(campaign_id)
        self._store.append_message(campaign_id, "user", content)
        key = self._resolve_key(api_key)
        return await self._respond(view, content, key)

    async def roll(
        self, campaign_id: str, dice: str, api_key: str | None = None
    ) -> RollResult:
        """Roll for the player, log it, and let the model react if possible."""
        sides = parse_die(dice)
        view = self._load(campaign_id)
        roll = roll_die(sides, self._rng)
        logger.info("campaign=%s player rolled %s: %d", campaign_id, roll.die, roll.result)

        roll_msg = self._store.append_message(campaign_id, "user", roll.message())
        key = api_key or self._config.fallback_api_key
        if not key:
            logger.info("campaign=%s no API key, roll recorded without a reply", campaign_id)
            return RollResult(roll=roll, message=roll_msg)

        turn = await self._respond(view, roll_msg.content, key, roll=roll)
        return RollResult(
            roll=roll, message=roll_msg, reply=turn.message, character=turn.character
        )

    # ------------------------------------------------------------------
    # Model call with fallback
    # ------------------------------------------------------------------

    async def complete(self, prompt: AssembledPrompt, model: str, api_key: str) -> str:
        """Call `model`; on failure retry exactly once on the default model."""
        default = self._config.default_model
        try:
            return await self._invoke(prompt, model, api_key)
        except LLMError as e:
            if model == default:
                raise ModelUnavailable(f"Model {model} failed: {e}") from e
            logger.warning("Model %s failed (%s); falling back to %s", model, e, default)

        try:
            return await self._invoke(prompt, default, api_key)
        except LLMError as e:
            raise ModelUnavailable(
                f"Model {model} and fallback {default} both failed: {e}"
            ) from e

    async def _invoke(self, prompt: AssembledPrompt, model: str, api_key: str) -> str:
        return await self._llm(
            model=model,
            system=prompt.system,
            turns=prompt.turns,
            max_tokens=self._config.max_output_tokens,
            api_key=api_key,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, campaign_id: str) -> CampaignView:
        view = self._store.get_campaign_view(campaign_id)
        if view is None:
            raise CampaignNotFound(f"Campaign {campaign_id} not found")
        return view

    def _resolve_key(self, api_key: str | None) -> str:
        key = api_key or self._config.fallback_api_key
        if not key:
            raise AuthenticationMissing("Anthropic API key missing")
        return key

    async def _respond(
        self,
        view: CampaignView,
        content: str,
        api_key: str,
        roll: Roll | None = None,
    ) -> TurnResult:
        campaign = view.campaign
        prompt = assemble_prompt(campaign, view.character, view.messages, content, roll=roll)
        model = campaign.ai_model or self._config.default_model
        raw = await self.complete(prompt, model, api_key)

        result = interpret(raw, self._rng)
        updated: Character | None = None
        if result.update is not None and view.character is not None:
            changes = result.update.changes()
            if changes:
                logger.info(
                    "campaign=%s applying character update %s", campaign.id, changes
                )
                updated = self._store.update_character(view.character.id, changes)

        message = self._store.append_message(campaign.id, "assistant", result.text)
        return TurnResult(message=message, character=updated)
