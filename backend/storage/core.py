"""Storage initialization, path helpers, and id utilities."""

import json
import uuid
from pathlib import Path
from typing import Any

_data_dir: Path | None = None


def new_id() -> str:
    return uuid.uuid4().hex


def init_storage(data_dir: Path) -> None:
    global _data_dir

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    campaigns_dir().mkdir(exist_ok=True)
    characters_dir().mkdir(exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def campaigns_dir() -> Path:
    return data_dir() / "campaigns"


def characters_dir() -> Path:
    return data_dir() / "characters"


def read_json(path: Path) -> Any:
    return json.loads(path.read_text())


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2))
