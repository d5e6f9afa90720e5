""" Session setup and a terminal driver for playing a story.

The terminal driver stands in for the presentation layer: it prints what the
narrative core asks to be shown, finishes "typing" immediately and reads
advance and choice input from stdin.
"""

import sys
import logging
import argparse
import warnings
from typing import Optional, TextIO

from lovesim import util, config, content, events, interpreter, messages, serialization
from lovesim.core import Gamestate, GameMode, Location, ContentError, parse_enum

def initialize_gamestate(content_source:content.ContentSource, seed:Optional[int]=None) -> Gamestate:
    """ Builds a session with every service wired up.

    Order matters: leaf services first (bus, state, world), then characters,
    then the registries that read state, then the interpreter and the
    coordinator that drive it.
    """
    gamestate = Gamestate(content_source, seed=seed)

    gamestate.characters.load(content_source)
    gamestate.state.initialize_characters(gamestate.characters)

    gamestate.event_registry = events.EventRegistry(content_source, gamestate.state, gamestate.world)
    gamestate.idle_lines = events.IdleLineRegistry(content_source, gamestate.state, gamestate.world)

    gamestate.dialog_manager = interpreter.DialogManager()
    gamestate.dialog_manager.initialize(gamestate)

    gamestate.event_manager = events.EventManager()
    gamestate.event_manager.initialize(gamestate)

    return gamestate

class ConsolePresenter:
    HELP = (
        "enter: advance, 1-9: choose, t: advance time, go LOCATION: move, "
        "idle: idle chatter, status: show state, save/load: snapshot, q: quit"
    )

    def __init__(self, gamestate:Gamestate, out:TextIO=sys.stdout) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.gamestate = gamestate
        self.out = out
        self.idle_picker = events.IdleLinePicker(gamestate.idle_lines, gamestate.random)
        self.saved:Optional[serialization.Snapshot] = None

    def initialize(self) -> None:
        bus = self.gamestate.bus
        bus.subscribe(messages.DialogueLineRequested, self._handle_line)
        bus.subscribe(messages.ChoiceListRequested, self._handle_choices)
        bus.subscribe(messages.ChapterTitleRequested, self._handle_chapter_title)
        bus.subscribe(messages.BackgroundChangeRequested, self._handle_background)
        bus.subscribe(messages.AffectionTierChanged, self._handle_tier_changed)
        bus.subscribe(messages.CurrencyChanged, self._handle_currency)
        bus.subscribe(messages.DialogueEnded, self._handle_dialogue_ended)

    def write(self, text:str) -> None:
        self.out.write(text + "\n")

    def _handle_line(self, message:messages.DialogueLineRequested) -> None:
        if message.speaker:
            self.write(f'{message.speaker}: {message.text}')
        else:
            self.write(f'  {message.text}')
        # no typewriter here, the whole line is already on screen
        self.gamestate.bus.publish(messages.TypingCompleted())

    def _handle_choices(self, message:messages.ChoiceListRequested) -> None:
        for i, choice in enumerate(message.choices):
            self.write(f'  {i+1}) {choice.text}')

    def _handle_chapter_title(self, message:messages.ChapterTitleRequested) -> None:
        self.write(f'\n=== {message.title} ===\n')
        self.gamestate.bus.publish(messages.ChapterTitleCompleted())

    def _handle_background(self, message:messages.BackgroundChangeRequested) -> None:
        self.write(f'[{message.background_id}]')

    def _handle_tier_changed(self, message:messages.AffectionTierChanged) -> None:
        self.write(f'({message.character_id} is now {message.new_tier})')

    def _handle_currency(self, message:messages.CurrencyChanged) -> None:
        self.write(f'({message.currency} {message.delta:+d})')

    def _handle_dialogue_ended(self, message:messages.DialogueEnded) -> None:
        self.write("")

    def status(self) -> None:
        gamestate = self.gamestate
        self.write(str(gamestate.world))
        for character_id in gamestate.characters.character_ids():
            self.write(f'  {character_id}: {gamestate.state.get_affection(character_id)} ({gamestate.state.get_tier(character_id)})')
        for currency in config.Settings.currency.KNOWN:
            self.write(f'  {currency}: {gamestate.state.get_currency(currency)}')
        if gamestate.state.flags:
            self.write(f'  flags: {", ".join(sorted(gamestate.state.flags))}')

    def handle_command(self, command:str) -> bool:
        """ Runs one line of player input. Returns False to quit. """
        gamestate = self.gamestate
        command = command.strip()
        if command in ("q", "quit"):
            return False
        elif command == "":
            gamestate.bus.publish(messages.AdvanceRequested())
        elif command.isdigit():
            gamestate.bus.publish(messages.ChoiceSelected(int(command) - 1))
        elif gamestate.is_dialogue_active():
            self.write("finish the conversation first")
        elif command == "t":
            gamestate.world.advance_time()
            if not gamestate.is_dialogue_active():
                self.write(str(gamestate.world))
        elif command.startswith("go "):
            try:
                location = parse_enum(Location, command[3:].strip())
            except ContentError:
                self.write(f'no such place, try one of {", ".join(x.name.lower() for x in Location)}')
                return True
            gamestate.world.set_location(location)
            if not gamestate.is_dialogue_active():
                self.write(str(gamestate.world))
        elif command == "idle":
            line = self.idle_picker.pick()
            self.write(line if line is not None else "...")
        elif command == "status":
            self.status()
        elif command == "save":
            self.saved = serialization.export_gamestate(gamestate)
            self.write("saved")
        elif command == "load":
            if self.saved is None:
                self.write("nothing saved")
            else:
                serialization.import_gamestate(gamestate, self.saved)
                self.write(f'loaded, {gamestate.world}')
        else:
            self.write(self.HELP)
        return True

def play(gamestate:Gamestate, presenter:ConsolePresenter, dialogue_id:Optional[str]=None, stdin:TextIO=sys.stdin) -> None:
    presenter.write(presenter.HELP)
    if dialogue_id:
        if not gamestate.dialog_manager.start(dialogue_id):
            presenter.write(f'could not start {dialogue_id}')
    else:
        presenter.write(str(gamestate.world))
        gamestate.event_manager.check_and_trigger()

    for command in stdin:
        if not presenter.handle_command(command):
            break

    if gamestate.is_dialogue_active():
        gamestate.dialog_manager.end()

def main() -> None:
    parser = argparse.ArgumentParser(description="play a lovesim story in the terminal")
    parser.add_argument("--content", help="content directory, defaults to the bundled sample story")
    parser.add_argument("--config", type=argparse.FileType("rt"), help="toml file overriding the built-in config")
    parser.add_argument("--dialogue", help="start this dialogue instead of waiting for a story event")
    parser.add_argument("--seed", type=int, default=None, help="random seed for idle lines")
    parser.add_argument("--log", default="/tmp/lovesim.log", help="log file")
    args = parser.parse_args()

    logging.basicConfig(
            format="%(asctime)s %(name)-12s %(levelname)-8s %(message)s",
            filename=args.log,
            filemode="w",
            level=logging.INFO
    )
    # send warnings to the logger
    logging.captureWarnings(True)
    warnings.simplefilter("default")

    if args.config:
        with args.config:
            config.load_config(args.config)

    if args.content:
        content_source:content.ContentSource = content.TomlContentSource(args.content)
    else:
        content_source = content.sample_content()

    gamestate = initialize_gamestate(content_source, seed=args.seed)
    presenter = ConsolePresenter(gamestate)
    presenter.initialize()
    gamestate.change_mode(GameMode.PLAYING)

    play(gamestate, presenter, dialogue_id=args.dialogue)

if __name__ == "__main__":
    main()
