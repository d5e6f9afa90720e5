""" lovesim core data model """

from .base import ContentError, TimeOfDay, Location, GameMode, CharacterPosition, TextAlign, parse_enum, enum_or_any
from .character import AffectionTier, CharacterDefinition, CharacterRegistry, load_character, load_tiers
from .state import StateStore
from .world import WorldCursor
from .gamestate import Gamestate
