"""Tests for GameMaster turns and rolls against real JSON storage and a StubLLM."""

import random
import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend import storage
from dungeon_master.errors import (
    AuthenticationMissing,
    CampaignNotFound,
    InvalidDiceSpec,
    ModelUnavailable,
)
from dungeon_master.llm import AnthropicLLM, LLMError
from dungeon_master.models import DEFAULT_MODEL
from dungeon_master.pipeline import GameMaster, GameMasterConfig

SONNET = "claude-sonnet-4-5-20250929"
OPUS = "claude-opus-4-5-20251101"
CONFIG = GameMasterConfig(fallback_api_key="env-key")


def _setup(with_character: bool = True, ai_model: str = DEFAULT_MODEL):
    character = None
    fields = {"name": "Goblin Hunt", "aiModel": ai_model}
    if with_character:
        character = storage.create_character(
            "u1", {"name": "Brakka", "hp": 10, "maxHp": 10, "gp": 20, "inventory": "Axe"}
        )
        fields["characterId"] = character.id
    campaign = storage.create_campaign("u1", fields)
    return campaign, character


def _gm(llm, config=CONFIG, seed=7) -> GameMaster:
    return GameMaster(storage, llm, config, rng=random.Random(seed))


# ── take_turn ────────────────────────────────────────────────


async def test_goblin_scenario(stub_llm):
    campaign, character = _setup()
    llm = stub_llm('You dodge! <<<UPDATE {"hp": 8}>>> The goblin snarls.')

    result = await _gm(llm).take_turn(campaign.id, "I dodge the goblin")

    assert result.message.content == "You dodge!  The goblin snarls."
    assert result.character.hp == 8
    assert result.character.max_hp == 10

    stored = storage.get_messages(campaign.id)
    assert [(m.role, m.content) for m in stored] == [
        ("user", "I dodge the goblin"),
        ("assistant", "You dodge!  The goblin snarls."),
    ]
    assert storage.get_character(character.id).hp == 8


async def test_update_overlays_only_given_fields(stub_llm):
    campaign, character = _setup()
    llm = stub_llm('Loot. <<<UPDATE {"gp": 75, "inventory": "Axe, Ruby", "name": "X"}>>>')

    result = await _gm(llm).take_turn(campaign.id, "I search")

    before = character.model_dump()
    after = storage.get_character(character.id).model_dump()
    assert after == {**before, "gp": 75, "inventory": "Axe, Ruby"}
    assert result.character.name == "Brakka"


async def test_malformed_update_changes_nothing(stub_llm):
    campaign, character = _setup()
    llm = stub_llm("You stumble. <<<UPDATE {hp: }>>>")

    result = await _gm(llm).take_turn(campaign.id, "I run")

    assert result.character is None
    assert result.message.content == "You stumble. <<<UPDATE {hp: }>>>"
    assert storage.get_character(character.id) == character


async def test_update_without_character_is_stripped_not_applied(stub_llm):
    campaign, _ = _setup(with_character=False)
    llm = stub_llm('The trap fires. <<<UPDATE {"hp": 2}>>>')

    result = await _gm(llm).take_turn(campaign.id, "I open the chest")

    assert result.character is None
    assert result.message.content == "The trap fires."
    assert storage.list_characters() == []


async def test_two_rolls_in_reply(stub_llm):
    campaign, _ = _setup()
    llm = stub_llm("Fireball! <<<ROLL d6>>> plus <<<ROLL d6>>> damage.")

    result = await _gm(llm).take_turn(campaign.id, "I cast")

    values = re.findall(r"\(Rolled d6: (\d+)\)", result.message.content)
    assert len(values) == 2
    assert all(1 <= int(v) <= 6 for v in values)


async def test_prompt_replays_history_and_appends_new_turn(stub_llm):
    campaign, _ = _setup()
    storage.append_message(campaign.id, "assistant", "You wake in a cell.")
    storage.append_message(campaign.id, "system", "Error: Failed to send roll to DM.")
    llm = stub_llm("The guard ignores you.")

    await _gm(llm).take_turn(campaign.id, "I call the guard")

    call = llm.calls[0]
    assert call["turns"] == [
        {"role": "assistant", "content": "You wake in a cell."},
        {"role": "assistant", "content": "Error: Failed to send roll to DM."},
        {"role": "user", "content": "I call the guard"},
    ]
    assert "Name: Brakka" in call["system"]
    assert call["max_tokens"] == 1024
    assert call["model"] == DEFAULT_MODEL


async def test_caller_key_wins_over_configured_key(stub_llm):
    campaign, _ = _setup()
    llm = stub_llm("ok")
    await _gm(llm).take_turn(campaign.id, "hi", api_key="request-key")
    assert llm.calls[0]["api_key"] == "request-key"


async def test_configured_key_used_as_fallback(stub_llm):
    campaign, _ = _setup()
    llm = stub_llm("ok")
    await _gm(llm).take_turn(campaign.id, "hi")
    assert llm.calls[0]["api_key"] == "env-key"


async def test_missing_key_fails_before_model_call_but_keeps_input(stub_llm):
    campaign, _ = _setup()
    llm = stub_llm("never")

    with pytest.raises(AuthenticationMissing):
        await _gm(llm, GameMasterConfig()).take_turn(campaign.id, "Hello?")

    assert llm.calls == []
    assert [m.content for m in storage.get_messages(campaign.id)] == ["Hello?"]


async def test_unknown_campaign(stub_llm):
    with pytest.raises(CampaignNotFound):
        await _gm(stub_llm()).take_turn("nope", "hi")


# ── fallback ─────────────────────────────────────────────────


async def test_fallback_to_default_model_once(stub_llm):
    campaign, _ = _setup(ai_model=SONNET)
    llm = stub_llm(LLMError("overloaded"), "Cheaper reply.")

    result = await _gm(llm).take_turn(campaign.id, "hi")

    assert result.message.content == "Cheaper reply."
    assert [c["model"] for c in llm.calls] == [SONNET, DEFAULT_MODEL]
    assert llm.calls[0]["system"] == llm.calls[1]["system"]
    assert llm.calls[0]["turns"] == llm.calls[1]["turns"]


async def test_fallback_failure_raises_model_unavailable(stub_llm):
    campaign, _ = _setup(ai_model=SONNET)
    llm = stub_llm(LLMError("overloaded"), LLMError("still down"))

    with pytest.raises(ModelUnavailable) as exc_info:
        await _gm(llm).take_turn(campaign.id, "hi")

    assert len(llm.calls) == 2
    assert isinstance(exc_info.value.__cause__, LLMError)
    # The player's message is kept; no assistant reply is written.
    assert [m.role for m in storage.get_messages(campaign.id)] == ["user"]


async def test_default_model_failure_is_not_retried(stub_llm):
    campaign, _ = _setup(ai_model=DEFAULT_MODEL)
    llm = stub_llm(LLMError("down"), "never used")

    with pytest.raises(ModelUnavailable):
        await _gm(llm).take_turn(campaign.id, "hi")

    assert len(llm.calls) == 1


async def test_configured_default_model_is_the_fallback(stub_llm):
    campaign, _ = _setup(ai_model=DEFAULT_MODEL)
    llm = stub_llm(LLMError("gone"), "ok")
    config = GameMasterConfig(default_model=SONNET, fallback_api_key="k")

    await _gm(llm, config).take_turn(campaign.id, "hi")

    assert [c["model"] for c in llm.calls] == [DEFAULT_MODEL, SONNET]


# ── roll ─────────────────────────────────────────────────────


async def test_roll_with_reply(stub_llm):
    campaign, character = _setup()
    llm = stub_llm('The lock clicks open. <<<UPDATE {"inventory": "Axe, Key"}>>>')

    result = await _gm(llm).roll(campaign.id, "d20")

    assert 1 <= result.roll.result <= 20
    assert result.message.role == "user"
    assert result.message.content == f"*Rolls d20... Result: {result.roll.result}*"
    assert result.reply.content == "The lock clicks open."
    assert result.character.inventory == "Axe, Key"

    call = llm.calls[0]
    assert f"rolled a d20 and got {result.roll.result}" in call["system"]
    assert call["turns"][-1] == {"role": "user", "content": result.message.content}
    assert [m.role for m in storage.get_messages(campaign.id)] == ["user", "assistant"]


async def test_roll_without_key_records_roll_only(stub_llm):
    campaign, _ = _setup()
    llm = stub_llm()

    result = await _gm(llm, GameMasterConfig()).roll(campaign.id, "d6")

    assert result.reply is None
    assert result.character is None
    assert llm.calls == []
    stored = storage.get_messages(campaign.id)
    assert [m.content for m in stored] == [result.message.content]


async def test_roll_rejects_bad_die_before_persisting(stub_llm):
    campaign, _ = _setup()
    with pytest.raises(InvalidDiceSpec):
        await _gm(stub_llm()).roll(campaign.id, "dX")
    assert storage.get_messages(campaign.id) == []


async def test_roll_model_failure_keeps_roll_message(stub_llm):
    campaign, _ = _setup(ai_model=DEFAULT_MODEL)
    llm = stub_llm(LLMError("down"))

    with pytest.raises(ModelUnavailable):
        await _gm(llm).roll(campaign.id, "d12")

    stored = storage.get_messages(campaign.id)
    assert len(stored) == 1
    assert stored[0].content.startswith("*Rolls d12... Result: ")


# ── fallback through the HTTP client ─────────────────────────


def _http_response(body) -> MagicMock:
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = body
    resp.raise_for_status = MagicMock()
    return resp


@pytest.mark.parametrize("bad_body", [["not", "a", "dict"], {"content": [{"type": "text"}]}])
async def test_malformed_model_body_still_falls_back(bad_body):
    campaign, _ = _setup(ai_model=OPUS)
    good = {"content": [{"type": "text", "text": "The fallback answers."}]}
    mock_post = AsyncMock(side_effect=[_http_response(bad_body), _http_response(good)])

    with patch("httpx.AsyncClient.post", mock_post):
        result = await _gm(AnthropicLLM()).take_turn(campaign.id, "hi")

    assert result.message.content == "The fallback answers."
    models = [c.kwargs["json"]["model"] for c in mock_post.call_args_list]
    assert models == [OPUS, DEFAULT_MODEL]


async def test_malformed_model_body_twice_is_model_unavailable():
    campaign, _ = _setup(ai_model=OPUS)
    mock_post = AsyncMock(side_effect=[_http_response([]), _http_response({"content": []})])

    with patch("httpx.AsyncClient.post", mock_post):
        with pytest.raises(ModelUnavailable):
            await _gm(AnthropicLLM()).take_turn(campaign.id, "hi")

    assert mock_post.call_count == 2
