"""Server-side dice.

Dice are always rolled here, never taken from the model or the client.
Randomness comes from an injected random.Random so tests can seed it; it is
gameplay randomness, not security.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

from dungeon_master.errors import InvalidDiceSpec

_DIE_RE = re.compile(r"[dD]?(\d+)")


@dataclass(frozen=True)
class Roll:
    sides: int
    result: int

    @property
    def die(self) -> str:
        return f"d{self.sides}"

    def annotation(self) -> str:
        """Inline replacement for a <<<ROLL dN>>> directive."""
        return f"(Rolled {self.die}: {self.result})"

    def message(self) -> str:
        """Chat text for a roll the player made themselves."""
        return f"*Rolls {self.die}... Result: {self.result}*"


def parse_die(spec: str | None) -> int:
    """Return the number of sides for "d20", "D6" or "20".

    Raises InvalidDiceSpec for anything else, including d0.
    """
    if spec is None:
        raise InvalidDiceSpec("Missing die size")
    match = _DIE_RE.fullmatch(spec.strip())
    if not match:
        raise InvalidDiceSpec(f"Invalid die {spec!r}")
    sides = int(match.group(1))
    if sides < 1:
        raise InvalidDiceSpec(f"Die must have at least one side, got {spec!r}")
    return sides


def roll_die(sides: int, rng: random.Random | None = None) -> Roll:
    if sides < 1:
        raise InvalidDiceSpec(f"Die must have at least one side, got d{sides}")
    rng = rng or random
    return Roll(sides=sides, result=rng.randint(1, sides))
