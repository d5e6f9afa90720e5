""" Snapshots of a playthrough for the persistence layer.

A Snapshot is a plain record of the state store and the world cursor. How it
gets written somewhere (json, a save slot, a cloud blob) is up to the caller:
to_dict produces plain python containers, from_dict reads them back.
"""

import logging
import dataclasses
from typing import Any, TYPE_CHECKING
from collections.abc import Mapping

from lovesim.core import ContentError, TimeOfDay, Location, parse_enum

if TYPE_CHECKING:
    from lovesim.core import Gamestate

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

@dataclasses.dataclass
class Snapshot:
    version:int = SNAPSHOT_VERSION
    affection:dict[str, int] = dataclasses.field(default_factory=dict)
    max_affection:dict[str, int] = dataclasses.field(default_factory=dict)
    currency:dict[str, int] = dataclasses.field(default_factory=dict)
    flags:list[str] = dataclasses.field(default_factory=list)
    current_day:int = 1
    time_of_day:TimeOfDay = TimeOfDay.MORNING
    location:Location = Location.HOME
    triggered_events:list[str] = dataclasses.field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "affection": dict(self.affection),
            "max_affection": dict(self.max_affection),
            "currency": dict(self.currency),
            "flags": list(self.flags),
            "current_day": self.current_day,
            "time_of_day": self.time_of_day.name.lower(),
            "location": self.location.name.lower(),
            "triggered_events": list(self.triggered_events),
        }

    @classmethod
    def from_dict(cls, data:Mapping[str, Any]) -> "Snapshot":
        """ raises ContentError on a snapshot we can't read """
        version = data.get("version", SNAPSHOT_VERSION)
        if not isinstance(version, int) or version > SNAPSHOT_VERSION or version < 1:
            raise ContentError(f'unsupported snapshot version {version!r}')

        def int_table(key:str) -> dict[str, int]:
            table = data.get(key) or {}
            if not isinstance(table, Mapping) or not all(isinstance(v, int) for v in table.values()):
                raise ContentError(f'snapshot {key} must map names to ints')
            return dict(table)

        def str_list(key:str) -> list[str]:
            values = data.get(key) or []
            if not isinstance(values, (list, tuple, set, frozenset)) or not all(isinstance(v, str) for v in values):
                raise ContentError(f'snapshot {key} must be a list of strings')
            return sorted(values)

        current_day = data.get("current_day", 1)
        if not isinstance(current_day, int):
            raise ContentError(f'snapshot current_day must be an int, got {current_day!r}')

        return cls(
            version=version,
            affection=int_table("affection"),
            max_affection=int_table("max_affection"),
            currency=int_table("currency"),
            flags=str_list("flags"),
            current_day=current_day,
            time_of_day=parse_enum(TimeOfDay, data.get("time_of_day", TimeOfDay.MORNING)),
            location=parse_enum(Location, data.get("location", Location.HOME)),
            triggered_events=str_list("triggered_events"),
        )


def export_gamestate(gamestate:"Gamestate") -> Snapshot:
    state = gamestate.state.export_snapshot()
    world = gamestate.world.export_snapshot()
    return Snapshot(
        affection=state["affection"],
        max_affection=state["max_affection"],
        currency=state["currency"],
        flags=state["flags"],
        current_day=world["current_day"],
        time_of_day=TimeOfDay(world["time_of_day"]),
        location=Location(world["location"]),
        triggered_events=world["triggered_events"],
    )


def import_gamestate(gamestate:"Gamestate", snapshot:Snapshot) -> None:
    """ Restores state and world from the snapshot. An active dialogue is
    ended first since its cursor is not part of the snapshot. """
    if gamestate.is_dialogue_active():
        logger.warning("ending active dialogue to load a snapshot")
        gamestate.dialog_manager.end()

    gamestate.state.import_snapshot({
        "affection": snapshot.affection,
        "max_affection": snapshot.max_affection,
        "currency": snapshot.currency,
        "flags": snapshot.flags,
    })
    gamestate.world.import_snapshot({
        "current_day": snapshot.current_day,
        "time_of_day": snapshot.time_of_day,
        "location": snapshot.location,
        "triggered_events": snapshot.triggered_events,
    })
