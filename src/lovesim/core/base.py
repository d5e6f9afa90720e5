""" lovesim core data model basic objects

No dependencies on other parts of the datamodel
"""

import enum
import logging
from typing import Any, Type, TypeVar, Union

logger = logging.getLogger(__name__)

class ContentError(ValueError):
    """ Static story content is missing or malformed. """
    pass

class TimeOfDay(enum.IntEnum):
    MORNING = 0
    AFTERNOON = 1
    EVENING = 2
    NIGHT = 3

    def next(self) -> "TimeOfDay":
        return TimeOfDay((self.value + 1) % len(TimeOfDay))

class Location(enum.IntEnum):
    HOME = 0
    SCHOOL = 1
    LIBRARY = 2
    CAFE = 3
    PARK = 4
    MALL = 5

class GameMode(enum.IntEnum):
    """ High level mode of the game, dialogue being one of them. """
    TITLE = enum.auto()
    PLAYING = enum.auto()
    PAUSED = enum.auto()
    DIALOGUE = enum.auto()
    SAVING = enum.auto()
    LOADING = enum.auto()

class CharacterPosition(enum.IntEnum):
    LEFT = enum.auto()
    CENTER = enum.auto()
    RIGHT = enum.auto()

class TextAlign(enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

E = TypeVar("E", bound=enum.Enum)

def parse_enum(klass:Type[E], value:Union[str, int, E]) -> E:
    """ Reads an enum member authored as a name ("morning"), a value or the
    member itself.

    raises ContentError if there's no such member.
    """
    if isinstance(value, klass):
        return value
    try:
        if isinstance(value, str):
            try:
                return klass[value.upper()]
            except KeyError:
                return klass(value)
        return klass(value)
    except (KeyError, ValueError) as e:
        raise ContentError(f'unknown {klass.__name__} "{value}"') from e

def enum_or_any(klass:Type[E], value:Any) -> int:
    """ Reads an optional enum condition field where -1 (or absent) means
    "any". """
    if value is None or value == -1:
        return -1
    return int(parse_enum(klass, value).value)
