""" The session object owning every narrative service for one playthrough """

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from lovesim import util, bus, messages
from .base import GameMode
from .state import StateStore
from .world import WorldCursor
from .character import CharacterRegistry

if TYPE_CHECKING:
    from lovesim import content, events, interpreter

class Gamestate:
    """ Owns the single instance of each service for a session.

    Construction wires up the leaf services (bus, state, world, characters).
    The registries, dialog manager and event manager are attached afterwards
    by sim.initialize_gamestate, in dependency order.
    """

    def __init__(self, content_source:"content.ContentSource", seed:Optional[int]=None, initial_mode:GameMode=GameMode.PLAYING) -> None:
        self.logger = logging.getLogger(util.fullname(self))

        self.content = content_source
        self.random = np.random.default_rng(seed)
        self.mode = initial_mode

        self.bus = bus.MessageBus()
        self.state = StateStore(self.bus)
        self.world = WorldCursor(self.bus)
        self.characters = CharacterRegistry()

        self.event_registry:"events.EventRegistry" = None # type: ignore[assignment]
        self.idle_lines:"events.IdleLineRegistry" = None # type: ignore[assignment]
        self.dialog_manager:"interpreter.DialogManager" = None # type: ignore[assignment]
        self.event_manager:"events.EventManager" = None # type: ignore[assignment]

    def change_mode(self, new_mode:GameMode) -> None:
        if new_mode == self.mode:
            return

        previous_mode = self.mode
        self.mode = new_mode
        self.logger.info(f'mode {previous_mode.name} -> {new_mode.name}')
        self.bus.publish(messages.GameModeChanged(previous_mode, new_mode))

    def is_dialogue_active(self) -> bool:
        return self.dialog_manager is not None and self.dialog_manager.is_active

    def reset(self) -> None:
        """ Starts the playthrough over. Static content stays loaded. """
        if self.dialog_manager is not None and self.dialog_manager.is_active:
            self.dialog_manager.end()
        self.state.reset()
        self.world.reset()
        self.logger.info("gamestate reset")
