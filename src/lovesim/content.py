""" Static story content: dialogue graphs, characters, story events and idle
lines.

Content sources hand back plain structured data (dicts and lists). Parsing
into model objects happens in the consuming modules. Sources raise
ContentError when something is missing or can't be parsed.
"""

import abc
import os
import json
import logging
import importlib.resources
from typing import Any, Optional
from collections.abc import Mapping, Sequence

import toml # type: ignore

from lovesim import util
from lovesim.core import ContentError

class ContentSource(abc.ABC):
    @abc.abstractmethod
    def fetch_dialogue(self, dialogue_id:str) -> Mapping[str, Any]: ...

    @abc.abstractmethod
    def fetch_characters(self) -> Sequence[Mapping[str, Any]]: ...

    @abc.abstractmethod
    def fetch_events(self) -> Sequence[Mapping[str, Any]]:
        """ Story events in load order, each with an event_id. """
        ...

    @abc.abstractmethod
    def fetch_idle_lines(self) -> Sequence[Mapping[str, Any]]: ...

    def dialogue_ids(self) -> Sequence[str]:
        return []

class MappingContentSource(ContentSource):
    """ Content held in memory, mostly useful for tests and tools. """

    def __init__(
        self,
        dialogues:Optional[Mapping[str, Mapping[str, Any]]]=None,
        characters:Optional[Sequence[Mapping[str, Any]]]=None,
        events:Optional[Sequence[Mapping[str, Any]]]=None,
        idle_lines:Optional[Sequence[Mapping[str, Any]]]=None,
    ) -> None:
        self.dialogues = dict(dialogues or {})
        self.characters = list(characters or [])
        self.events = list(events or [])
        self.idle_lines = list(idle_lines or [])

    def fetch_dialogue(self, dialogue_id:str) -> Mapping[str, Any]:
        if dialogue_id not in self.dialogues:
            raise ContentError(f'dialogue "{dialogue_id}" not found')
        return self.dialogues[dialogue_id]

    def fetch_characters(self) -> Sequence[Mapping[str, Any]]:
        return self.characters

    def fetch_events(self) -> Sequence[Mapping[str, Any]]:
        return self.events

    def fetch_idle_lines(self) -> Sequence[Mapping[str, Any]]:
        return self.idle_lines

    def dialogue_ids(self) -> Sequence[str]:
        return list(self.dialogues.keys())

def _read_toml(path:str) -> dict[str, Any]:
    try:
        with open(path, "rt", encoding="utf-8") as f:
            return toml.load(f)
    except ValueError as e:
        # TomlDecodeError is a ValueError
        raise ContentError(f'could not parse {path}: {e}') from e
    except OSError as e:
        raise ContentError(f'could not read {path}: {e}') from e

class TomlContentSource(ContentSource):
    """ Content laid out in a directory:

    characters.toml    [[characters]] array of tables
    events.toml        one table per story event, keyed by event id
    events/*.toml      more event tables, loaded after events.toml by filename
    idle_lines.toml    [[idle_lines]] array of tables
    dialogues/ID.toml  one dialogue graph per file (ID.json also accepted)
    """

    def __init__(self, path:str) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.path = path

    def _optional_file(self, filename:str) -> Optional[dict[str, Any]]:
        path = os.path.join(self.path, filename)
        if not os.path.exists(path):
            self.logger.debug(f'no {path}')
            return None
        return _read_toml(path)

    def fetch_dialogue(self, dialogue_id:str) -> Mapping[str, Any]:
        if util.is_blank(dialogue_id) or os.path.sep in dialogue_id or dialogue_id.startswith("."):
            raise ContentError(f'bad dialogue id "{dialogue_id}"')

        dialogue_dir = os.path.join(self.path, "dialogues")
        toml_path = os.path.join(dialogue_dir, f'{dialogue_id}.toml')
        json_path = os.path.join(dialogue_dir, f'{dialogue_id}.json')
        if os.path.exists(toml_path):
            return _read_toml(toml_path)
        elif os.path.exists(json_path):
            try:
                with open(json_path, "rt", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ContentError(f'could not load {json_path}: {e}') from e
        else:
            raise ContentError(f'dialogue "{dialogue_id}" not found in {dialogue_dir}')

    def fetch_characters(self) -> Sequence[Mapping[str, Any]]:
        data = self._optional_file("characters.toml")
        if data is None:
            return []
        characters = data.get("characters", [])
        if not isinstance(characters, list):
            raise ContentError("characters.toml must hold a [[characters]] array")
        return characters

    def fetch_events(self) -> Sequence[Mapping[str, Any]]:
        tables:list[dict[str, Any]] = []
        data = self._optional_file("events.toml")
        if data is not None:
            tables.append(data)

        events_dir = os.path.join(self.path, "events")
        if os.path.isdir(events_dir):
            for filename in sorted(os.listdir(events_dir)):
                if filename.endswith(".toml"):
                    tables.append(_read_toml(os.path.join(events_dir, filename)))

        events:list[Mapping[str, Any]] = []
        for table in tables:
            for event_id, event_data in table.items():
                if not isinstance(event_data, dict):
                    raise ContentError(f'event {event_id} must be a table')
                events.append({"event_id": event_id, **event_data})
        return events

    def fetch_idle_lines(self) -> Sequence[Mapping[str, Any]]:
        data = self._optional_file("idle_lines.toml")
        if data is None:
            return []
        groups = data.get("idle_lines", [])
        if not isinstance(groups, list):
            raise ContentError("idle_lines.toml must hold a [[idle_lines]] array")
        return groups

    def dialogue_ids(self) -> Sequence[str]:
        dialogue_dir = os.path.join(self.path, "dialogues")
        if not os.path.isdir(dialogue_dir):
            return []
        return sorted(
            os.path.splitext(x)[0] for x in os.listdir(dialogue_dir) if x.endswith(".toml") or x.endswith(".json")
        )

def sample_content() -> TomlContentSource:
    """ The small sample story bundled with the package. """
    return TomlContentSource(str(importlib.resources.files("lovesim.data").joinpath("content")))
