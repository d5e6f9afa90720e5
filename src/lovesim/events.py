""" Story events, idle lines and the coordinator that triggers events.

Responsible for:
 * loading story events and idle line groups from content, lazily
 * ordering them by priority (descending, load order breaks ties)
 * deciding which are eligible given current state and world
 * starting the dialogue of the top eligible event when the world changes
"""

import logging
from typing import Any, Optional, TYPE_CHECKING
from collections.abc import Mapping, Sequence

import numpy as np

from lovesim import util, config, conditions, messages
from lovesim.core import ContentError, StateStore, WorldCursor

if TYPE_CHECKING:
    from lovesim import content
    from lovesim.core import Gamestate


class StoryEvent:
    def __init__(
        self,
        event_id:str,
        dialogue_id:str,
        condition:conditions.Condition,
        priority:int=0,
        repeatable:bool=False,
        description:str="",
    ) -> None:
        self.event_id = event_id
        self.dialogue_id = dialogue_id
        self.condition = condition
        self.priority = priority
        self.repeatable = repeatable
        self.description = description

    def __repr__(self) -> str:
        return f'StoryEvent({self.event_id!r}, dialogue={self.dialogue_id!r}, priority={self.priority})'


class IdleLineGroup:
    def __init__(self, condition:conditions.Condition, priority:int, lines:Sequence[str], description:str="") -> None:
        self.condition = condition
        self.priority = priority
        self.lines = tuple(lines)
        self.description = description


def _priority(data:Mapping[str, Any]) -> int:
    priority = data.get("priority", 0)
    if not isinstance(priority, int) or isinstance(priority, bool):
        raise ContentError(f'priority must be an int, got {priority!r}')
    return priority


def load_story_event(event_data:Mapping[str, Any]) -> StoryEvent:
    if not isinstance(event_data, Mapping):
        raise ContentError(f'story event must be a table, got {event_data!r}')
    return StoryEvent(
        event_data.get("event_id") or "",
        event_data.get("dialogue_id") or "",
        conditions.load_condition(event_data.get("condition")),
        priority=_priority(event_data),
        repeatable=bool(event_data.get("repeatable", False)),
        description=event_data.get("description", ""),
    )


def load_idle_line_group(group_data:Mapping[str, Any]) -> IdleLineGroup:
    if not isinstance(group_data, Mapping):
        raise ContentError(f'idle line group must be a table, got {group_data!r}')
    lines = group_data.get("lines", [])
    if not isinstance(lines, list) or not all(isinstance(x, str) for x in lines):
        raise ContentError(f'idle lines must be a list of strings, got {lines!r}')
    return IdleLineGroup(
        conditions.load_condition(group_data.get("condition")),
        _priority(group_data),
        [x for x in lines if not util.is_blank(x)],
        description=group_data.get("description", ""),
    )


class EventRegistry:
    """ All story events, highest priority first. Loaded on first use. """

    def __init__(self, content_source:"content.ContentSource", state:StateStore, world:WorldCursor) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.content = content_source
        self.state = state
        self.world = world

        self._events:Optional[list[StoryEvent]] = None
        self._events_by_id:dict[str, StoryEvent] = {}

    def _load(self) -> list[StoryEvent]:
        if self._events is not None:
            return self._events

        self._events = []
        self._events_by_id = {}

        try:
            events_data = self.content.fetch_events()
        except ContentError as e:
            self.logger.error(f'could not load story events: {e}')
            return self._events

        loaded:list[StoryEvent] = []
        for event_data in events_data:
            try:
                event = load_story_event(event_data)
            except ContentError as e:
                self.logger.error(f'skipping bad story event: {e}')
                continue

            if util.is_blank(event.event_id):
                self.logger.warning(f'skipping story event with no id: {event_data}')
                continue
            if event.event_id in self._events_by_id:
                self.logger.warning(f'skipping duplicate story event {event.event_id}')
                continue

            self._events_by_id[event.event_id] = event
            loaded.append(event)

        # sorted is stable so load order breaks priority ties
        self._events = sorted(loaded, key=lambda x: x.priority, reverse=True)
        self.logger.info(f'loaded {len(self._events)} story events')
        return self._events

    def reload(self) -> None:
        self._events = None
        self._load()

    @property
    def count(self) -> int:
        return len(self._load())

    def get_event(self, event_id:str) -> Optional[StoryEvent]:
        self._load()
        return self._events_by_id.get(event_id)

    def get_all_events(self) -> Sequence[StoryEvent]:
        return list(self._load())

    def _is_triggerable(self, event:StoryEvent) -> bool:
        if not event.repeatable and self.world.is_event_triggered(event.event_id):
            return False
        return conditions.evaluate(event.condition, self.state, self.world)

    def get_triggerable(self) -> Sequence[StoryEvent]:
        return [x for x in self._load() if self._is_triggerable(x)]

    def get_top_triggerable(self) -> Optional[StoryEvent]:
        for event in self._load():
            if self._is_triggerable(event):
                return event
        return None


class IdleLineRegistry:
    """ Ambient lines grouped under conditions and priorities. """

    def __init__(self, content_source:"content.ContentSource", state:StateStore, world:WorldCursor) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.content = content_source
        self.state = state
        self.world = world

        self._groups:Optional[list[IdleLineGroup]] = None

    def _load(self) -> list[IdleLineGroup]:
        if self._groups is not None:
            return self._groups

        self._groups = []
        try:
            groups_data = self.content.fetch_idle_lines()
        except ContentError as e:
            self.logger.error(f'could not load idle lines: {e}')
            return self._groups

        loaded = []
        for group_data in groups_data:
            try:
                loaded.append(load_idle_line_group(group_data))
            except ContentError as e:
                self.logger.error(f'skipping bad idle line group: {e}')

        self._groups = sorted(loaded, key=lambda x: x.priority, reverse=True)
        self.logger.info(f'loaded {len(self._groups)} idle line groups')
        return self._groups

    def reload(self) -> None:
        self._groups = None
        self._load()

    @property
    def count(self) -> int:
        return len(self._load())

    def get_available_lines(self) -> list[str]:
        """ Every line from the eligible groups tied for the highest eligible
        priority. """
        lines:list[str] = []
        best_priority:Optional[int] = None
        for group in self._load():
            if len(group.lines) == 0:
                continue
            if best_priority is not None and group.priority != best_priority:
                continue
            if not conditions.evaluate(group.condition, self.state, self.world):
                continue
            best_priority = group.priority
            lines.extend(group.lines)
        return lines


class IdleLinePicker:
    """ Picks a random available idle line, avoiding the line picked last
    time whenever there's an alternative. """

    def __init__(self, idle_lines:IdleLineRegistry, random:np.random.Generator) -> None:
        self.idle_lines = idle_lines
        self.random = random
        self.last_line:Optional[str] = None

    def pick(self) -> Optional[str]:
        lines = self.idle_lines.get_available_lines()
        if len(lines) > 1 and self.last_line is not None:
            lines = [x for x in lines if x != self.last_line] or lines
        if len(lines) == 0:
            return None

        self.last_line = lines[self.random.integers(len(lines))]
        return self.last_line


class EventManager:
    """ Starts story event dialogues as the world changes.

    At most one dialogue started here is active at a time. The in flight flag
    is set before the dialogue starts and cleared when any dialogue ends.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.gamestate:"Gamestate" = None # type: ignore[assignment]
        self.trigger_in_flight = False
        self.current_event_id:Optional[str] = None

    def initialize(self, gamestate:"Gamestate") -> None:
        self.gamestate = gamestate
        self.gamestate.bus.subscribe(messages.TimeOfDayChanged, self._handle_time_changed)
        self.gamestate.bus.subscribe(messages.LocationChanged, self._handle_location_changed)
        self.gamestate.bus.subscribe(messages.DialogueEnded, self._handle_dialogue_ended)

    def shutdown(self) -> None:
        self.gamestate.bus.unsubscribe(messages.TimeOfDayChanged, self._handle_time_changed)
        self.gamestate.bus.unsubscribe(messages.LocationChanged, self._handle_location_changed)
        self.gamestate.bus.unsubscribe(messages.DialogueEnded, self._handle_dialogue_ended)

    def _handle_time_changed(self, message:messages.TimeOfDayChanged) -> None:
        if config.Settings.events.AUTO_CHECK_ON_TIME_CHANGE:
            self.check_and_trigger()

    def _handle_location_changed(self, message:messages.LocationChanged) -> None:
        if config.Settings.events.AUTO_CHECK_ON_LOCATION_CHANGE:
            self.check_and_trigger()

    def _handle_dialogue_ended(self, message:messages.DialogueEnded) -> None:
        self.trigger_in_flight = False
        self.current_event_id = None

    def check_and_trigger(self) -> bool:
        """ Triggers the top eligible story event, if any. Returns True if a
        dialogue was started. """
        if self.trigger_in_flight:
            self.logger.debug("trigger already in flight, skipping check")
            return False
        if self.gamestate.is_dialogue_active():
            self.logger.debug("dialogue active, skipping check")
            return False

        event = self.gamestate.event_registry.get_top_triggerable()
        if event is None:
            self.logger.debug(f'no triggerable events {self.gamestate.world}')
            return False

        return self.trigger_event(event)

    def trigger_event(self, event:Optional[StoryEvent]) -> bool:
        if event is None:
            self.logger.error("tried to trigger a null event")
            return False
        if self.trigger_in_flight:
            self.logger.warning(f'trigger already in flight, not triggering {event.event_id}')
            return False

        self.trigger_in_flight = True
        self.current_event_id = event.event_id

        # record before starting so nothing published while the dialogue
        # starts can trigger this event again
        if not event.repeatable:
            self.gamestate.world.mark_event_triggered(event.event_id)

        self.logger.info(f'triggering {event.event_id} -> dialogue {event.dialogue_id}')

        if util.is_blank(event.dialogue_id):
            self.logger.warning(f'event {event.event_id} has no dialogue id')
            self.trigger_in_flight = False
            self.current_event_id = None
            return False

        if not self.gamestate.dialog_manager.start(event.dialogue_id):
            self.logger.error(f'could not start dialogue {event.dialogue_id} for event {event.event_id}')
            self.trigger_in_flight = False
            self.current_event_id = None
            return False

        return True

    def trigger_event_by_id(self, event_id:str) -> bool:
        event = self.gamestate.event_registry.get_event(event_id)
        if event is None:
            self.logger.error(f'no such event {event_id}')
            return False
        return self.trigger_event(event)

    def triggerable_count(self) -> int:
        return len(self.gamestate.event_registry.get_triggerable())
