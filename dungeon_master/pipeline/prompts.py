"""Prompt assembly: the game master's system text and the replayed turns.

Everything here is a pure function of its inputs. The system text is a
Handlebars template; values are inserted with triple-stash so character
names and inventories are not HTML-escaped.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import pybars

from dungeon_master.dice import Roll
from dungeon_master.llm import Turn
from dungeon_master.models import Campaign, Character, Message

CONTEXT_LIMIT = 20_000
CUSTOM_INSTRUCTIONS_LIMIT = 1_000

GAME_MASTER_PROMPT = """\
You are a BRUTAL, IMPARTIAL Dungeon Master running a solo campaign for a \
player using {{{system}}} rules.
Setting: World of Greyhawk or as specified.
Rule 1: Be descriptive but DO NOT PANDER. You are a referee, not a fan.
Rule 2: Dice results are LAW. Do not fudge rolls to save the character. \
Death is part of the game.
Rule 3: Adhere strictly to the provided campaign knowledge base (if any) \
for lore and rules.
Rule 4: YOU MUST TRACK THE CHARACTER'S STATUS. If the character's HP, \
coins, inventory or any other stat changes, you MUST append a JSON block \
to the end of your response like this:
<<<UPDATE { "hp": 15, "gp": 50, "inventory": "Sword, Shield, Rations" }>>>
Only include fields that changed. "inventory" must be the FULL updated list.
Rule 5: NEVER invent a random number. Whenever the game needs a die roll, \
write <<<ROLL d20>>> (or d4, d6, d8, d10, d12, d100) exactly where the \
result belongs and the server will roll it.

Current Campaign: {{{name}}}
{{#if character}}

PLAYER CHARACTER:
Name: {{{character.name}}}
Race: {{{character.race}}}
Class: {{{character.class}}}
Level: {{{character.level}}}
HP: {{{character.hp}}}/{{{character.maxHp}}}
AC: {{{character.ac}}}
Stats: STR {{{character.strength}}}, DEX {{{character.dexterity}}}, \
CON {{{character.constitution}}}, INT {{{character.intelligence}}}, \
WIS {{{character.wisdom}}}, CHA {{{character.charisma}}}
Alignment: {{{character.alignment}}}
Inventory: {{{character.inventory}}}
Coin Pouch: {{{character.pp}}} pp, {{{character.gp}}} gp, \
{{{character.ep}}} ep, {{{character.sp}}} sp, {{{character.cp}}} cp
{{/if}}
{{#if context}}

CAMPAIGN KNOWLEDGE BASE (STRICT ADHERENCE REQUIRED):
{{{context}}}
{{/if}}
{{#if custom_instructions}}

CUSTOM INSTRUCTIONS:
{{{custom_instructions}}}
{{/if}}
{{#if roll}}

The player just rolled a {{{roll.die}}} and got {{{roll.result}}}. \
This roll is final: narrate its consequences and do not roll it again.
{{/if}}
"""

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


@dataclass
class AssembledPrompt:
    system: str
    turns: list[Turn]


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_context(
    campaign: Campaign,
    character: Character | None = None,
    roll: Roll | None = None,
) -> dict[str, Any]:
    """Template variables for GAME_MASTER_PROMPT, with long texts truncated."""
    ctx: dict[str, Any] = {
        "system": campaign.system,
        "name": campaign.name,
        "character": None,
        "context": (campaign.context or "")[:CONTEXT_LIMIT],
        "custom_instructions": (campaign.custom_instructions or "")[:CUSTOM_INSTRUCTIONS_LIMIT],
        "roll": None,
    }
    if character is not None:
        # Stringified so a 0 coin count still renders.
        sheet = {
            key: str(value)
            for key, value in character.model_dump(mode="json", by_alias=True).items()
        }
        sheet["inventory"] = character.inventory or "(empty)"
        ctx["character"] = sheet
    if roll is not None:
        ctx["roll"] = {"die": roll.die, "result": str(roll.result)}
    return ctx


def build_system_prompt(
    campaign: Campaign,
    character: Character | None = None,
    roll: Roll | None = None,
) -> str:
    return render_prompt(GAME_MASTER_PROMPT, build_context(campaign, character, roll))


def build_turns(history: Sequence[Message], new_content: str) -> list[Turn]:
    """Replay history in creation order and append the new user turn.

    The model only knows "user" and "assistant"; system notices are
    replayed as assistant turns.
    """
    ordered = sorted(history, key=lambda m: m.created_at)
    turns: list[Turn] = [
        {"role": "user" if m.role == "user" else "assistant", "content": m.content}
        for m in ordered
    ]
    turns.append({"role": "user", "content": new_content})
    return turns


def assemble_prompt(
    campaign: Campaign,
    character: Character | None,
    history: Sequence[Message],
    new_content: str,
    roll: Roll | None = None,
) -> AssembledPrompt:
    return AssembledPrompt(
        system=build_system_prompt(campaign, character, roll),
        turns=build_turns(history, new_content),
    )
