"""Control directives embedded in model output.

Two token shapes, matched byte-for-byte:

    <<<ROLL dN>>>          replaced by "(Rolled dN: X)", every occurrence
    <<<UPDATE {json}>>>    first valid block applied to the character sheet

The scanner looks for "<<<", classifies the keyword right after it, then
looks for the next ">>>". Anything that does not fit (unknown keyword, no
closer, a second opener before the closer) is left in the text untouched.

Rolls are resolved first, then the update block is read from the rolled
text.
"""

from __future__ import annotations

import json
import logging
import random
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from pydantic import ValidationError

from dungeon_master.dice import Roll, parse_die, roll_die
from dungeon_master.errors import DirectiveParseFailure, InvalidDiceSpec
from dungeon_master.models import CHARACTER_UPDATE_FIELDS, CharacterUpdate

logger = logging.getLogger(__name__)

OPEN = "<<<"
CLOSE = ">>>"

_KEYWORD_RE = re.compile(r"(ROLL|UPDATE)\b")
_ROLL_BODY_RE = re.compile(r" (d\w*)")


@dataclass(frozen=True)
class Directive:
    kind: str  # "ROLL" | "UPDATE"
    start: int
    end: int  # exclusive, just past ">>>"
    body: str  # text between the keyword and ">>>"


@dataclass
class Interpretation:
    text: str
    update: CharacterUpdate | None = None
    rolls: list[Roll] = field(default_factory=list)


def scan(text: str) -> Iterator[Directive]:
    """Yield well-delimited directives left to right."""
    pos = 0
    while True:
        start = text.find(OPEN, pos)
        if start == -1:
            return
        head = start + len(OPEN)
        keyword = _KEYWORD_RE.match(text, head)
        if keyword is None:
            pos = start + 1
            continue
        close = text.find(CLOSE, keyword.end())
        if close == -1:
            return
        reopen = text.find(OPEN, keyword.end(), close)
        if reopen != -1:
            pos = reopen
            continue
        end = close + len(CLOSE)
        yield Directive(keyword.group(1), start, end, text[keyword.end():close])
        pos = end


# ---------------------------------------------------------------------------
# <<<ROLL dN>>>
# ---------------------------------------------------------------------------

def _roll_sides(body: str) -> int:
    match = _ROLL_BODY_RE.fullmatch(body)
    if match is None:
        raise InvalidDiceSpec(f"Malformed roll directive {body!r}")
    return parse_die(match.group(1))


def resolve_rolls(text: str, rng: random.Random) -> tuple[str, list[Roll]]:
    """Replace every valid roll directive with its annotated result."""
    parts: list[str] = []
    rolls: list[Roll] = []
    pos = 0
    for directive in scan(text):
        if directive.kind != "ROLL":
            continue
        try:
            sides = _roll_sides(directive.body)
        except InvalidDiceSpec as e:
            logger.warning("Ignoring roll directive: %s", e)
            continue
        roll = roll_die(sides, rng)
        rolls.append(roll)
        parts.append(text[pos:directive.start])
        parts.append(roll.annotation())
        pos = directive.end
    if not rolls:
        return text, rolls
    parts.append(text[pos:])
    return "".join(parts), rolls


# ---------------------------------------------------------------------------
# <<<UPDATE {json}>>>
# ---------------------------------------------------------------------------

def _update_blocks(text: str) -> list[Directive]:
    """Update directives whose body is brace-delimited."""
    blocks = []
    for directive in scan(text):
        if directive.kind != "UPDATE":
            continue
        body = directive.body.strip()
        if body.startswith("{") and body.endswith("}"):
            blocks.append(directive)
    return blocks


def parse_update(body: str) -> CharacterUpdate:
    """Parse an update body and keep only whitelisted, well-typed fields.

    Raises DirectiveParseFailure when the body is not a JSON object.
    """
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as e:
        raise DirectiveParseFailure(f"Update block is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise DirectiveParseFailure(
            f"Update block must be a JSON object, got {type(raw).__name__}"
        )

    allowed = {k: v for k, v in raw.items() if k in CHARACTER_UPDATE_FIELDS}
    dropped = sorted(set(raw) - set(allowed))
    if dropped:
        logger.debug("Dropping non-whitelisted update keys: %s", dropped)

    try:
        return CharacterUpdate.model_validate(allowed)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning("Dropping mistyped update keys: %s", sorted(bad))
        return CharacterUpdate.model_validate(
            {k: v for k, v in allowed.items() if k not in bad}
        )


def extract_update(text: str) -> tuple[str, CharacterUpdate | None]:
    """Parse the first update block and strip it from the visible text.

    A block whose JSON does not parse leaves the text exactly as emitted.
    Additional valid blocks are not applied but are removed as well.
    """
    blocks = _update_blocks(text)
    if not blocks:
        return text, None

    first = blocks[0]
    try:
        update = parse_update(first.body.strip())
    except DirectiveParseFailure as e:
        logger.warning("Ignoring update directive: %s", e)
        return text, None

    if len(blocks) > 1:
        logger.warning("Only the first update block is applied; %d ignored", len(blocks) - 1)

    parts: list[str] = []
    pos = 0
    for block in blocks:
        parts.append(text[pos:block.start])
        pos = block.end
    parts.append(text[pos:])
    return "".join(parts).strip(), update


def interpret(text: str, rng: random.Random) -> Interpretation:
    """Resolve rolls, then pull out the update block."""
    rolled, rolls = resolve_rolls(text, rng)
    cleaned, update = extract_update(rolled)
    return Interpretation(text=cleaned, update=update, rolls=rolls)
