"""File-based JSON storage for campaigns, characters and chat logs.

Data layout:
  data/
    config.json          App settings (default model, token ceiling, API URL)
    campaigns/
      <id>.json          Campaign metadata (name, system, aiModel, context, ...)
      <id>/
        messages.json    Append-only chat log
    characters/
      <id>.json          Character sheet

Ids are random hex strings. Records are pydantic models from
dungeon_master.models, written with their camelCase aliases.

Deleting a campaign removes its chat log. Deleting a character un-links it
from every campaign that referenced it; the campaigns survive.

This module is also the persistence collaborator handed to GameMaster:
get_campaign_view, append_message and update_character are the functions
the turn pipeline calls.
"""

# Re-export all public symbols so `from backend import storage` keeps working.

from .core import (  # noqa: F401
    campaigns_dir,
    characters_dir,
    data_dir,
    init_storage,
    new_id,
    read_json,
    write_json,
)

from .campaigns import (  # noqa: F401
    CONTEXT_SEPARATOR,
    CONTEXT_UPLOAD_LIMIT,
    append_context,
    create_campaign,
    delete_campaign,
    get_campaign,
    get_campaign_view,
    list_campaigns,
    update_campaign,
)

from .messages import (  # noqa: F401
    append_message,
    get_messages,
)

from .characters import (  # noqa: F401
    create_character,
    delete_character,
    get_character,
    list_characters,
    update_character,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)
