"""Game-master turn pipeline.

Executes the full turn loop for one player message:
  1. Prompt assembly: system text (rules, character sheet, knowledge base,
     custom instructions) plus the replayed history and the new turn.
  2. Model call: campaign model first, one retry on the default model.
  3. Directive interpretation: <<<ROLL dN>>> replaced by server rolls,
     then the first <<<UPDATE {...}>>> block filtered through the
     whitelist, applied to the character and cut from the reply.

Reply format: free text. Directives are consumed; the player never sees them.
"""

from .directives import (  # noqa: F401
    Directive,
    Interpretation,
    extract_update,
    interpret,
    parse_update,
    resolve_rolls,
    scan,
)
from .orchestrator import (  # noqa: F401
    CampaignStore,
    GameMaster,
    GameMasterConfig,
    RollResult,
    TurnResult,
)
from .prompts import (  # noqa: F401
    AssembledPrompt,
    PromptError,
    assemble_prompt,
    build_system_prompt,
    build_turns,
)
