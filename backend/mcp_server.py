"""FastMCP server exposing the game master's dice and system prompt.

Tools:
  - roll_die(dice)                 server-side roll, e.g. "d20"
  - system_prompt(campaign_id)     the system text the model would get

Uses the same JSON storage as the web app; DATA_DIR selects it.

Usage:
    uv run python -m backend.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from backend import storage
from dungeon_master.dice import parse_die, roll_die as _roll_die
from dungeon_master.pipeline import build_system_prompt

mcp = FastMCP("dungeon-master")


@mcp.tool()
def roll_die(dice: str) -> dict:
    """Roll one die ("d4".."d100") and return the die and result."""
    roll = _roll_die(parse_die(dice))
    return {"die": roll.die, "result": roll.result, "text": roll.annotation()}


@mcp.tool()
def system_prompt(campaign_id: str) -> str:
    """Return the campaign's system prompt, including the character sheet."""
    view = storage.get_campaign_view(campaign_id)
    if view is None:
        raise ValueError(f"Campaign {campaign_id} not found")
    return build_system_prompt(view.campaign, view.character)


if __name__ == "__main__":
    import os
    from pathlib import Path

    storage.init_storage(Path(os.getenv("DATA_DIR", "data")))
    mcp.run()
