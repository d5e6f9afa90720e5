""" Eligibility conditions for story events and idle lines.

A Condition is a conjunction of simple clauses over the StateStore and the
WorldCursor. Clauses are checked in a fixed order and evaluation stops at the
first one that fails:

 1. minimum day
 2. maximum day
 3. time of day
 4. location
 5. minimum affection
 6. maximum affection
 7. required flags (all set)
 8. forbidden flags (none set)

Unset bounds are -1. A condition with nothing set is always true.
"""

import abc
from typing import Any, Optional
from collections.abc import Mapping, Sequence

from lovesim import util
from lovesim.core import StateStore, WorldCursor, TimeOfDay, Location, ContentError, enum_or_any

class Criteria(abc.ABC):
    @abc.abstractmethod
    def evaluate(self, state:StateStore, world:WorldCursor) -> bool: ...

class MinDay(Criteria):
    def __init__(self, day:int) -> None:
        self.day = day

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return world.current_day >= self.day

class MaxDay(Criteria):
    def __init__(self, day:int) -> None:
        self.day = day

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return world.current_day <= self.day

class TimeOfDayIs(Criteria):
    def __init__(self, time_of_day:TimeOfDay) -> None:
        self.time_of_day = time_of_day

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return world.time_of_day == self.time_of_day

class LocationIs(Criteria):
    def __init__(self, location:Location) -> None:
        self.location = location

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return world.location == self.location

class MinAffection(Criteria):
    def __init__(self, character_id:str, affection:int) -> None:
        self.character_id = character_id
        self.affection = affection

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return state.get_affection(self.character_id) >= self.affection

class MaxAffection(Criteria):
    def __init__(self, character_id:str, affection:int) -> None:
        self.character_id = character_id
        self.affection = affection

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return state.get_affection(self.character_id) <= self.affection

class FlagsSet(Criteria):
    def __init__(self, flags:Sequence[str]) -> None:
        self.flags = flags

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return all(state.is_flag_set(flag) for flag in self.flags)

class FlagsUnset(Criteria):
    def __init__(self, flags:Sequence[str]) -> None:
        self.flags = flags

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        return not any(state.is_flag_set(flag) for flag in self.flags)

class Condition:
    def __init__(
        self,
        min_day:int=-1,
        max_day:int=-1,
        time_of_day:int=-1,
        location:int=-1,
        character_id:str="",
        min_affection:int=-1,
        max_affection:int=-1,
        required_flags:Sequence[str]=(),
        forbidden_flags:Sequence[str]=(),
    ) -> None:
        self.min_day = min_day
        self.max_day = max_day
        self.time_of_day = time_of_day
        self.location = location
        self.character_id = character_id
        self.min_affection = min_affection
        self.max_affection = max_affection
        # blank entries are authoring noise, drop them
        self.required_flags = tuple(x for x in required_flags if not util.is_blank(x))
        self.forbidden_flags = tuple(x for x in forbidden_flags if not util.is_blank(x))

        self._criteria:Optional[list[Criteria]] = None

    def __repr__(self) -> str:
        fields = ", ".join(f'{k}={v!r}' for k, v in vars(self).items() if not k.startswith("_"))
        return f'Condition({fields})'

    def is_empty(self) -> bool:
        return len(self.criteria()) == 0

    def criteria(self) -> list[Criteria]:
        """ The clauses of this condition in evaluation order. """
        if self._criteria is not None:
            return self._criteria

        criteria:list[Criteria] = []
        if self.min_day > 0:
            criteria.append(MinDay(self.min_day))
        if self.max_day > 0:
            criteria.append(MaxDay(self.max_day))
        if self.time_of_day >= 0:
            criteria.append(TimeOfDayIs(TimeOfDay(self.time_of_day)))
        if self.location >= 0:
            criteria.append(LocationIs(Location(self.location)))
        if not util.is_blank(self.character_id):
            if self.min_affection >= 0:
                criteria.append(MinAffection(self.character_id, self.min_affection))
            if self.max_affection >= 0:
                criteria.append(MaxAffection(self.character_id, self.max_affection))
        if self.required_flags:
            criteria.append(FlagsSet(self.required_flags))
        if self.forbidden_flags:
            criteria.append(FlagsUnset(self.forbidden_flags))

        self._criteria = criteria
        return criteria

    def evaluate(self, state:StateStore, world:WorldCursor) -> bool:
        # all() stops at the first failing clause
        return all(c.evaluate(state, world) for c in self.criteria())

def evaluate(condition:Optional[Condition], state:StateStore, world:WorldCursor) -> bool:
    if condition is None:
        return True
    return condition.evaluate(state, world)

def _int_field(data:Mapping[str, Any], key:str) -> int:
    value = data.get(key, -1)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ContentError(f'condition field {key} must be an int, got {value!r}')
    return value

def _flag_list(data:Mapping[str, Any], key:str) -> list[str]:
    value = data.get(key, [])
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ContentError(f'condition field {key} must be a list of strings, got {value!r}')
    return value

def load_condition(condition_data:Optional[Mapping[str, Any]]) -> Condition:
    """ Parses a condition table. time_of_day and location may be given by
    name ("evening") or by value. Missing or null data is the empty
    condition. """
    if condition_data is None:
        return Condition()
    if not isinstance(condition_data, Mapping):
        raise ContentError(f'condition must be a table, got {condition_data!r}')

    return Condition(
        min_day=_int_field(condition_data, "min_day"),
        max_day=_int_field(condition_data, "max_day"),
        time_of_day=enum_or_any(TimeOfDay, condition_data.get("time_of_day")),
        location=enum_or_any(Location, condition_data.get("location")),
        character_id=condition_data.get("character_id", ""),
        min_affection=_int_field(condition_data, "min_affection"),
        max_affection=_int_field(condition_data, "max_affection"),
        required_flags=_flag_list(condition_data, "required_flags"),
        forbidden_flags=_flag_list(condition_data, "forbidden_flags"),
    )
