"""Create a demo character and campaign for development/testing."""

import shutil

from backend import storage

DEMO_USER = "demo"

DEMO_CHARACTER = {
    "name": "Brakka Stonehand",
    "race": "Dwarf",
    "class": "Fighter",
    "alignment": "Lawful Neutral",
    "level": 1,
    "hp": 10,
    "maxHp": 10,
    "ac": 4,
    "strength": 17,
    "dexterity": 9,
    "constitution": 16,
    "intelligence": 10,
    "wisdom": 12,
    "charisma": 7,
    "gp": 80,
    "inventory": "Battle axe, chain mail, shield, 50 ft rope, 3 days rations, torch x6",
}

DEMO_CONTEXT = (
    "The Moathouse: a ruined fortified manor in a fetid marsh east of the "
    "village of Hommlet. Giant frogs lurk in the moat. Bandits have made the "
    "upper ruins their camp; something older stirs in the dungeon beneath."
)


def create_demo_data() -> None:
    """Wipe existing campaigns/characters and create fresh demo data."""
    for directory in (storage.campaigns_dir(), storage.characters_dir()):
        if directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True, exist_ok=True)

    character = storage.create_character(DEMO_USER, DEMO_CHARACTER)
    campaign = storage.create_campaign(DEMO_USER, {
        "name": "The Ruins of the Moathouse",
        "system": "AD&D 1e",
        "characterId": character.id,
        "customInstructions": "Keep replies under 200 words. Describe smells.",
    })
    storage.append_context(campaign.id, DEMO_CONTEXT)
    storage.append_message(
        campaign.id,
        "assistant",
        "Mist clings to the marsh. Ahead, the broken gatehouse of the Moathouse "
        "leans over black water. Something large slips beneath the surface.",
    )

    print(f"Created demo character {character.id} and campaign {campaign.id} "
          f"for user '{DEMO_USER}'.")
