""" Messages exchanged over the MessageBus.

Each message kind is its own class and the bus keeps one channel per class.
Messages are immutable records.

Outbound messages flow from the narrative core to presentation (requests and
notifications). Inbound messages flow from presentation to the core
(completion signals and player input).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from lovesim.core.base import TimeOfDay, Location, GameMode, CharacterPosition, TextAlign
    from lovesim import dialog

class Message:
    """ Base class for everything published on the bus. """
    pass

# game and world state notifications

@dataclass(frozen=True)
class GameModeChanged(Message):
    previous_mode: GameMode
    new_mode: GameMode

@dataclass(frozen=True)
class TimeOfDayChanged(Message):
    previous_time: TimeOfDay
    new_time: TimeOfDay
    current_day: int

@dataclass(frozen=True)
class DayChanged(Message):
    previous_day: int
    new_day: int

@dataclass(frozen=True)
class LocationChanged(Message):
    previous_location: Location
    new_location: Location

@dataclass(frozen=True)
class AffectionChanged(Message):
    character_id: str
    previous_value: int
    new_value: int
    delta: int

@dataclass(frozen=True)
class AffectionTierChanged(Message):
    character_id: str
    previous_tier: str
    new_tier: str

@dataclass(frozen=True)
class CurrencyChanged(Message):
    currency: str
    previous_value: int
    new_value: int
    delta: int

# dialogue, core -> presentation

@dataclass(frozen=True)
class DialogueStarted(Message):
    dialogue_id: str

@dataclass(frozen=True)
class DialogueEnded(Message):
    dialogue_id: str

@dataclass(frozen=True)
class DialogueLineRequested(Message):
    speaker: str
    text: str
    has_choices: bool
    text_align: Optional[TextAlign] = None

@dataclass(frozen=True)
class TypingSkipRequested(Message):
    """ Reveal the rest of the current line immediately. """
    pass

@dataclass(frozen=True)
class ChoiceListRequested(Message):
    choices: Sequence[dialog.DialogChoice]

@dataclass(frozen=True)
class ChapterTitleRequested(Message):
    title: str

@dataclass(frozen=True)
class BackgroundChangeRequested(Message):
    background_id: str
    duration: float

@dataclass(frozen=True)
class CharacterDisplayRequested(Message):
    character_id: str
    emotion: str
    position: CharacterPosition
    fade_in: bool = True

@dataclass(frozen=True)
class CharacterHideRequested(Message):
    # None hides every character
    position: Optional[CharacterPosition] = None

@dataclass(frozen=True)
class CharacterHighlightRequested(Message):
    # None means nobody is highlighted, everyone at equal brightness
    position: Optional[CharacterPosition] = None

# dialogue, presentation -> core

@dataclass(frozen=True)
class AdvanceRequested(Message):
    pass

@dataclass(frozen=True)
class ChoiceSelected(Message):
    index: int

@dataclass(frozen=True)
class TypingCompleted(Message):
    pass

@dataclass(frozen=True)
class ChapterTitleCompleted(Message):
    pass
