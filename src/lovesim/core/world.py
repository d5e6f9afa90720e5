""" Calendar and location cursor plus the record of triggered story events """

import logging
from typing import Any, Optional
from collections.abc import Mapping

from lovesim import util, config, bus, messages
from .base import TimeOfDay, Location, ContentError, parse_enum

class WorldCursor:
    def __init__(self, message_bus:bus.MessageBus) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.bus = message_bus

        self.current_day = 1
        self.time_of_day = TimeOfDay.MORNING
        self.location = Location.HOME
        self.triggered_event_ids:set[str] = set()
        self.reset()

    def __str__(self) -> str:
        return f'day {self.current_day} {self.time_of_day.name.lower()} at {self.location.name.lower()}'

    def advance_time(self) -> None:
        """ Moves to the next time of day. Night wraps to the next morning,
        announcing the new day before the new time. """
        previous_time = self.time_of_day
        self.time_of_day = previous_time.next()

        if previous_time == TimeOfDay.NIGHT:
            previous_day = self.current_day
            self.current_day += 1
            self.logger.info(f'day {previous_day} -> {self.current_day}')
            self.bus.publish(messages.DayChanged(previous_day, self.current_day))

        self.logger.info(f'time {previous_time.name} -> {self.time_of_day.name}')
        self.bus.publish(messages.TimeOfDayChanged(previous_time, self.time_of_day, self.current_day))

    def set_time_of_day(self, time_of_day:TimeOfDay) -> None:
        if time_of_day == self.time_of_day:
            return

        previous_time = self.time_of_day
        self.time_of_day = time_of_day
        self.logger.info(f'time set {previous_time.name} -> {self.time_of_day.name}')
        self.bus.publish(messages.TimeOfDayChanged(previous_time, self.time_of_day, self.current_day))

    def set_location(self, location:Location) -> None:
        if location == self.location:
            return

        previous_location = self.location
        self.location = location
        self.logger.info(f'location {previous_location.name} -> {self.location.name}')
        self.bus.publish(messages.LocationChanged(previous_location, self.location))

    def set_day(self, day:int) -> None:
        if day < 1:
            self.logger.warning(f'ignoring invalid day {day}')
            return
        if day == self.current_day:
            return

        previous_day = self.current_day
        self.current_day = day
        self.logger.info(f'day set {previous_day} -> {self.current_day}')
        self.bus.publish(messages.DayChanged(previous_day, self.current_day))

    def mark_event_triggered(self, event_id:str) -> None:
        if util.is_blank(event_id):
            return
        self.triggered_event_ids.add(event_id)
        self.logger.info(f'event triggered {event_id}')

    def is_event_triggered(self, event_id:str) -> bool:
        if util.is_blank(event_id):
            return False
        return event_id in self.triggered_event_ids

    def export_snapshot(self) -> dict[str, Any]:
        return {
            "current_day": self.current_day,
            "time_of_day": int(self.time_of_day),
            "location": int(self.location),
            "triggered_events": sorted(self.triggered_event_ids),
        }

    def import_snapshot(self, snapshot:Optional[Mapping[str, Any]]) -> None:
        """ Restores the cursor without announcing anything. """
        if snapshot is None:
            self.logger.error("tried to import a null snapshot")
            return
        if not isinstance(snapshot, Mapping):
            self.logger.error(f'snapshot must be a table, got {snapshot!r}')
            return

        try:
            time_of_day = parse_enum(TimeOfDay, snapshot.get("time_of_day", TimeOfDay.MORNING))
            location = parse_enum(Location, snapshot.get("location", Location.HOME))
        except ContentError as e:
            self.logger.error(f'bad world snapshot, ignoring: {e}')
            return

        day = snapshot.get("current_day", 1)
        if not isinstance(day, int) or isinstance(day, bool):
            self.logger.warning(f'bad day {day!r} in world snapshot, using 1')
            day = 1
        triggered = snapshot.get("triggered_events") or []
        if not isinstance(triggered, (list, tuple, set)):
            self.logger.warning(f'bad triggered events {triggered!r} in world snapshot, ignoring')
            triggered = []

        self.current_day = day if day > 0 else 1
        self.time_of_day = time_of_day
        self.location = location
        self.triggered_event_ids = set(x for x in triggered if isinstance(x, str) and not util.is_blank(x))

        self.logger.info(f'world loaded: {self}')

    def reset(self) -> None:
        self.current_day = max(1, config.Settings.world.START_DAY)
        self.time_of_day = parse_enum(TimeOfDay, config.Settings.world.START_TIME)
        self.location = parse_enum(Location, config.Settings.world.START_LOCATION)
        self.triggered_event_ids.clear()
