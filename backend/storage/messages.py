"""Chat message storage (append-only log per campaign)."""

from pathlib import Path

from dungeon_master.models import Message

from .core import campaigns_dir, new_id, read_json, write_json


def _messages_path(campaign_id: str) -> Path:
    return campaigns_dir() / campaign_id / "messages.json"


def get_messages(campaign_id: str) -> list[Message]:
    """Load messages for a campaign, oldest first. Returns [] if none exist."""
    path = _messages_path(campaign_id)
    if not path.is_file():
        return []
    messages = [Message.model_validate(m) for m in read_json(path)]
    return sorted(messages, key=lambda m: m.created_at)


def append_message(campaign_id: str, role: str, content: str) -> Message:
    """Append one message to a campaign's chat log and return it."""
    path = _messages_path(campaign_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    existing = read_json(path) if path.is_file() else []
    message = Message(id=new_id(), role=role, content=content, campaign_id=campaign_id)
    existing.append(message.model_dump(mode="json", by_alias=True))
    write_json(path, existing)
    return message
