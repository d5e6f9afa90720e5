""" Characters and their affection tiers """

import logging
from typing import Any, Optional, TYPE_CHECKING
from collections.abc import Iterable, Mapping, Sequence

from lovesim import util, config
from .base import ContentError

if TYPE_CHECKING:
    from lovesim import content

class AffectionTier:
    def __init__(self, name:str, threshold:int) -> None:
        self.name = name
        self.threshold = threshold

    def __repr__(self) -> str:
        return f'AffectionTier({self.name!r}, {self.threshold})'

class CharacterDefinition:
    """ Static definition of a character. Never mutated after load. """

    def __init__(self, character_id:str, display_name:str, max_affection:int, tiers:Sequence[AffectionTier], description:str="") -> None:
        self.character_id = character_id
        self.display_name = display_name
        self.description = description
        self.max_affection = max_affection
        self.tiers = tuple(tiers)

    def __str__(self) -> str:
        return f'{self.character_id} ({self.display_name})'

    def tier_of(self, affection:int) -> str:
        """ Name of the tier with the highest threshold <= affection.

        Tiers need not be authored in order. Among equal thresholds the one
        defined last wins. If affection is below every threshold we fall back
        to the first defined tier.
        """
        if len(self.tiers) == 0:
            return ""

        result = self.tiers[0]
        best_threshold:Optional[int] = None
        for tier in self.tiers:
            if affection >= tier.threshold and (best_threshold is None or tier.threshold >= best_threshold):
                result = tier
                best_threshold = tier.threshold
        return result.name

def load_tiers(tier_data:Iterable[Mapping[str, Any]]) -> list[AffectionTier]:
    if not isinstance(tier_data, (list, tuple)):
        raise ContentError(f'tiers must be a list of tables, got {tier_data!r}')
    tiers = []
    for x in tier_data:
        if not isinstance(x, Mapping):
            raise ContentError(f'tier must be a table, got {x!r}')
        if "name" not in x or "threshold" not in x:
            raise ContentError(f'tier must have name and threshold, got {x}')
        if not isinstance(x["threshold"], int):
            raise ContentError(f'tier threshold must be an int, got {x["threshold"]}')
        tiers.append(AffectionTier(str(x["name"]), x["threshold"]))
    return tiers

def load_character(character_data:Mapping[str, Any]) -> CharacterDefinition:
    if not isinstance(character_data, Mapping):
        raise ContentError(f'character must be a table, got {character_data!r}')
    if util.is_blank(character_data.get("character_id")):
        raise ContentError(f'character has no character_id: {character_data}')

    max_affection = character_data.get("max_affection", config.Settings.affection.DEFAULT_MAX)
    if not isinstance(max_affection, int) or max_affection < 0:
        raise ContentError(f'bad max_affection for {character_data["character_id"]}: {max_affection}')

    if "tiers" in character_data:
        tiers = load_tiers(character_data["tiers"])
    else:
        tiers = load_tiers(config.Settings.affection.DEFAULT_TIERS)

    return CharacterDefinition(
        character_data["character_id"],
        character_data.get("display_name", character_data["character_id"]),
        max_affection,
        tiers,
        description=character_data.get("description", ""),
    )

class CharacterRegistry:
    """ All character definitions, keyed by character id. """

    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.characters:dict[str, CharacterDefinition] = {}

    def __contains__(self, character_id:str) -> bool:
        return character_id in self.characters

    def __len__(self) -> int:
        return len(self.characters)

    def add(self, character:CharacterDefinition) -> bool:
        if character.character_id in self.characters:
            self.logger.warning(f'duplicate character id {character.character_id}, ignoring')
            return False
        self.characters[character.character_id] = character
        return True

    def load(self, content_source:"content.ContentSource") -> None:
        """ Loads every character definition from static content.

        Malformed definitions are skipped. A content source that can't
        produce characters at all leaves the registry empty.
        """
        self.characters.clear()
        try:
            character_data = content_source.fetch_characters()
        except ContentError as e:
            self.logger.error(f'could not load characters: {e}')
            return

        for data in character_data:
            try:
                character = load_character(data)
            except ContentError as e:
                self.logger.warning(f'skipping character: {e}')
                continue
            self.add(character)

        self.logger.info(f'loaded {len(self.characters)} characters')

    def get(self, character_id:str) -> Optional[CharacterDefinition]:
        if util.is_blank(character_id):
            return None
        return self.characters.get(character_id)

    def find(self, name:str) -> Optional[CharacterDefinition]:
        """ Looks a character up by id, falling back to display name.
        Dialogue lines name their speaker either way. """
        character = self.get(name)
        if character is not None:
            return character
        for character in self.characters.values():
            if character.display_name == name:
                return character
        return None

    def character_ids(self) -> Iterable[str]:
        return self.characters.keys()

    def tier_of(self, character_id:str, affection:int) -> str:
        """ Tier name for the character at the given affection, "" if we
        don't know the character. """
        character = self.get(character_id)
        if character is None:
            return ""
        return character.tier_of(affection)
