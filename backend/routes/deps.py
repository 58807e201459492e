"""Shared FastAPI dependencies: requesting user, model client, game master."""

import os

from fastapi import Depends, Header, HTTPException

from backend import storage
from dungeon_master.llm import LLM, AnthropicLLM
from dungeon_master.pipeline import GameMaster, GameMasterConfig


async def get_user_id(x_user_id: str = Header(default="")) -> str:
    """Identity is issued upstream; we only need a stable owner id."""
    if not x_user_id:
        raise HTTPException(401, "X-User-Id header required")
    return x_user_id


def get_llm() -> LLM:
    config = storage.get_config()
    return AnthropicLLM(api_url=config["api_url"], timeout=config["timeout_seconds"])


def get_game_master(llm: LLM = Depends(get_llm)) -> GameMaster:
    config = storage.get_config()
    return GameMaster(
        storage,
        llm,
        GameMasterConfig(
            default_model=config["default_model"],
            max_output_tokens=config["max_output_tokens"],
            fallback_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        ),
    )
