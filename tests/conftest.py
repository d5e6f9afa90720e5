import logging
from typing import Any, Callable, Optional

import pytest

from lovesim import sim, content, core, bus
from . import MessageRecorder

# some logging to turn on if we like
#logging.getLogger("lovesim.interpreter").level = logging.DEBUG
#logging.getLogger("lovesim.events").level = logging.DEBUG

TEST_CHARACTERS = [
    {
        "character_id": "haru",
        "display_name": "Haru",
        "tiers": [
            {"name": "A", "threshold": 0},
            {"name": "B", "threshold": 20},
            {"name": "C", "threshold": 40},
            {"name": "D", "threshold": 60},
            {"name": "E", "threshold": 80},
        ],
    },
    {
        "character_id": "mina",
        "display_name": "Mina",
        "max_affection": 50,
    },
]

TEST_DIALOGUES = {
    "flat": {
        "lines": [
            {"text": "It is morning.", "background": "bedroom"},
            {"speaker": "Haru", "text": "Morning!", "characters": [{"character_id": "haru", "emotion": "happy", "position": "center"}]},
            {"speaker": "Haru", "text": "Bye."},
        ],
    },
    "choices": {
        "lines": [
            {"speaker": "Haru", "text": "Pick one.", "choices": [
                {"text": "nice", "affection_change": 10, "flag": "was_nice"},
                {"text": "mean", "affection_change": -5},
            ]},
        ],
    },
    "single": {
        "lines": [
            {"speaker": "Haru", "text": "Just the one.", "choices": [
                {"text": "ok", "affection_change": 3, "flag": "said_ok"},
            ]},
        ],
    },
    "sections": {
        "chapter_title": "Chapter 1",
        "sections": {
            "start": [
                {"speaker": "Haru", "text": "Where to?", "choices": [
                    {"text": "stay", "goto": "b"},
                    {"text": "leave", "next": "flat"},
                ]},
            ],
            "b": [
                {"text": "In b."},
                {"text": "Still in b.", "choices": [
                    {"text": "smile", "affection_change": 5},
                    {"text": "frown", "affection_change": -5},
                ]},
            ],
        },
    },
    "goto_and_next": {
        "sections": {
            "start": [
                {"speaker": "Haru", "text": "Both ways?", "choices": [
                    {"text": "both", "affection_change": 2, "goto": "after", "next": "flat"},
                    {"text": "neither"},
                ]},
            ],
            "after": [
                {"text": "After."},
            ],
        },
    },
    "attribution": {
        "lines": [
            {"speaker": "Mina", "text": "Hello."},
            {"text": "She waits.", "choices": [
                {"text": "wave", "affection_change": 5},
                {"text": "ignore", "affection_change": -5},
            ]},
        ],
    },
    "hide": {
        "lines": [
            {"speaker": "Haru", "text": "See you.", "hide_characters_after": True, "characters": [{"character_id": "haru", "position": "left"}]},
            {"text": "He leaves."},
        ],
    },
    "bad_goto": {
        "lines": [
            {"text": "Go.", "choices": [
                {"text": "a", "goto": "nowhere"},
                {"text": "b"},
            ]},
        ],
    },
    "malformed": {
        "title": "no lines here",
    },
}

@pytest.fixture
def message_bus() -> bus.MessageBus:
    return bus.MessageBus()

@pytest.fixture
def make_content() -> Callable[..., content.MappingContentSource]:
    def _make_content(
        dialogues:Optional[dict[str, Any]]=None,
        characters:Optional[list[dict[str, Any]]]=None,
        events:Optional[list[dict[str, Any]]]=None,
        idle_lines:Optional[list[dict[str, Any]]]=None,
    ) -> content.MappingContentSource:
        return content.MappingContentSource(
            dialogues=TEST_DIALOGUES if dialogues is None else dialogues,
            characters=TEST_CHARACTERS if characters is None else characters,
            events=events or [],
            idle_lines=idle_lines or [],
        )
    return _make_content

@pytest.fixture
def content_source(make_content) -> content.MappingContentSource:
    return make_content()

@pytest.fixture
def make_gamestate(make_content) -> Callable[..., core.Gamestate]:
    def _make_gamestate(**kwargs:Any) -> core.Gamestate:
        return sim.initialize_gamestate(make_content(**kwargs), seed=0)
    return _make_gamestate

@pytest.fixture
def gamestate(content_source) -> core.Gamestate:
    return sim.initialize_gamestate(content_source, seed=0)

@pytest.fixture
def recorder(gamestate) -> MessageRecorder:
    return MessageRecorder(gamestate.bus)
