"""Global app configuration (model defaults, output ceiling, API endpoint).

The API key is never written here; it comes from the request or from the
ANTHROPIC_API_KEY environment variable.
"""

import json
from pathlib import Path
from typing import Any

from dungeon_master.llm import DEFAULT_API_URL
from dungeon_master.models import DEFAULT_MODEL
from dungeon_master.pipeline.orchestrator import DEFAULT_MAX_OUTPUT_TOKENS

from .core import data_dir

_CONFIG_DEFAULTS: dict[str, Any] = {
    "default_model": DEFAULT_MODEL,
    "max_output_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
    "timeout_seconds": 60,
    "api_url": DEFAULT_API_URL,
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = dict(_CONFIG_DEFAULTS)
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        for key in _CONFIG_DEFAULTS:
            if key in stored:
                config[key] = stored[key]
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge known fields into config and persist. Returns full config."""
    config = get_config()
    for key, value in fields.items():
        if key in _CONFIG_DEFAULTS:
            config[key] = value
    _config_path().write_text(json.dumps(config, indent=2))
    return config
