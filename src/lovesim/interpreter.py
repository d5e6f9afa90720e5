""" Walks a dialogue graph one line at a time.

The interpreter publishes presentation requests on the message bus and then
waits for the matching signal (typing completed, chapter title completed,
advance, choice selected) to come back. Nothing here blocks: waiting is just
being in the right state when the next signal arrives.
"""

import enum
import logging
from typing import Optional, TYPE_CHECKING

from lovesim import util, config, dialog, messages
from lovesim.core import ContentError, GameMode, CharacterPosition

if TYPE_CHECKING:
    from lovesim.core import Gamestate


class DialogState(enum.IntEnum):
    IDLE = enum.auto()
    CHAPTER_TITLE = enum.auto()
    TYPING = enum.auto()
    AWAITING_ADVANCE = enum.auto()
    AWAITING_CHOICE = enum.auto()
    AWAITING_SINGLE_CHOICE_CONFIRM = enum.auto()


class DialogManager:
    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.gamestate:"Gamestate" = None # type: ignore[assignment]

        self.state = DialogState.IDLE
        self.dialogue_id:Optional[str] = None
        self.graph:Optional[dialog.DialogGraph] = None
        self.section:Optional[str] = None
        self.line_index = 0
        self.pending_choice:Optional[dialog.DialogChoice] = None
        self.prior_mode:Optional[GameMode] = None

        # which character we last asked presentation to show at each position
        self.on_screen:dict[CharacterPosition, str] = {}

        self._graph_cache:dict[str, dialog.DialogGraph] = {}

    def initialize(self, gamestate:"Gamestate") -> None:
        self.gamestate = gamestate
        self.gamestate.bus.subscribe(messages.AdvanceRequested, self._handle_advance)
        self.gamestate.bus.subscribe(messages.ChoiceSelected, self._handle_choice)
        self.gamestate.bus.subscribe(messages.TypingCompleted, self._handle_typing_completed)
        self.gamestate.bus.subscribe(messages.ChapterTitleCompleted, self._handle_chapter_title_completed)

    def shutdown(self) -> None:
        self.gamestate.bus.unsubscribe(messages.AdvanceRequested, self._handle_advance)
        self.gamestate.bus.unsubscribe(messages.ChoiceSelected, self._handle_choice)
        self.gamestate.bus.unsubscribe(messages.TypingCompleted, self._handle_typing_completed)
        self.gamestate.bus.unsubscribe(messages.ChapterTitleCompleted, self._handle_chapter_title_completed)

    @property
    def is_active(self) -> bool:
        return self.state != DialogState.IDLE

    @property
    def current_line(self) -> Optional[dialog.DialogLine]:
        if self.graph is None or self.section is None:
            return None
        lines = self.graph.lines(self.section)
        if self.line_index >= len(lines):
            return None
        return lines[self.line_index]

    # graph loading

    def load_graph(self, dialogue_id:str) -> dialog.DialogGraph:
        """ Fetches and parses a dialogue graph.

        raises ContentError if the graph can't be fetched or is malformed.
        """
        if dialogue_id in self._graph_cache:
            return self._graph_cache[dialogue_id]

        graph = dialog.load_dialog_data(dialogue_id, self.gamestate.content.fetch_dialogue(dialogue_id))
        for problem in dialog.validate_graph(graph):
            self.logger.warning(problem)

        if config.Settings.dialogue.CACHE_GRAPHS:
            self._graph_cache[dialogue_id] = graph
        return graph

    def clear_cache(self) -> None:
        self._graph_cache.clear()

    # control

    def start(self, dialogue_id:str, section:Optional[str]=None) -> bool:
        """ Starts a dialogue at the given section, or the graph's start
        section.

        Returns False, changing nothing, if a dialogue is already active or if
        the graph can't be loaded or lacks the section.
        """
        if self.is_active:
            self.logger.warning(f'dialogue {self.dialogue_id} already active, not starting {dialogue_id}')
            return False
        if util.is_blank(dialogue_id):
            self.logger.error("tried to start a dialogue with no id")
            return False

        try:
            graph = self.load_graph(dialogue_id)
        except ContentError as e:
            self.logger.error(f'could not load dialogue {dialogue_id}: {e}')
            return False

        target_section = section or graph.start_section
        if not graph.has_section(target_section):
            self.logger.error(f'dialogue {dialogue_id} has no section "{target_section}"')
            return False

        self.dialogue_id = dialogue_id
        self.graph = graph
        self.section = target_section
        self.line_index = 0
        self.pending_choice = None
        self.on_screen.clear()

        self.prior_mode = self.gamestate.mode
        self.gamestate.change_mode(GameMode.DIALOGUE)

        self.logger.info(f'starting dialogue {dialogue_id} at {target_section}')
        if graph.chapter_title and target_section == graph.start_section:
            self.state = DialogState.CHAPTER_TITLE
            self.gamestate.bus.publish(messages.DialogueStarted(dialogue_id))
            self.gamestate.bus.publish(messages.ChapterTitleRequested(graph.chapter_title))
        else:
            # a state other than IDLE so handlers of DialogueStarted see an
            # active dialogue
            self.state = DialogState.TYPING
            self.gamestate.bus.publish(messages.DialogueStarted(dialogue_id))
            self._show_line()
        return True

    def end(self) -> None:
        if not self.is_active:
            self.logger.debug("end requested with no active dialogue")
            return

        dialogue_id = self.dialogue_id
        assert dialogue_id is not None

        self.state = DialogState.IDLE
        self.dialogue_id = None
        self.graph = None
        self.section = None
        self.line_index = 0
        self.pending_choice = None
        self.on_screen.clear()

        prior_mode = self.prior_mode or GameMode.PLAYING
        self.prior_mode = None
        self.gamestate.change_mode(prior_mode)

        self.logger.info(f'ended dialogue {dialogue_id}')
        self.gamestate.bus.publish(messages.DialogueEnded(dialogue_id))

    def advance(self) -> None:
        if self.state == DialogState.TYPING:
            self.gamestate.bus.publish(messages.TypingSkipRequested())
        elif self.state == DialogState.AWAITING_ADVANCE:
            self.line_index += 1
            self._show_line()
        elif self.state == DialogState.AWAITING_SINGLE_CHOICE_CONFIRM:
            choice = self.pending_choice
            assert choice is not None
            self.pending_choice = None
            self._resolve_choice(choice)
        else:
            self.logger.debug(f'ignoring advance in {self.state.name}')

    def choose(self, index:int) -> None:
        if self.state != DialogState.AWAITING_CHOICE:
            self.logger.debug(f'ignoring choice {index} in {self.state.name}')
            return

        line = self.current_line
        assert line is not None
        if index < 0 or index >= len(line.choices):
            self.logger.error(f'choice index {index} out of range for {len(line.choices)} choices')
            return

        self._resolve_choice(line.choices[index])

    def typing_finished(self) -> None:
        if self.state != DialogState.TYPING:
            self.logger.debug(f'ignoring typing completed in {self.state.name}')
            return

        line = self.current_line
        assert line is not None

        if len(line.choices) == 0:
            self.state = DialogState.AWAITING_ADVANCE
        elif len(line.choices) == 1:
            self.pending_choice = line.choices[0]
            self.state = DialogState.AWAITING_SINGLE_CHOICE_CONFIRM
        else:
            self.state = DialogState.AWAITING_CHOICE

        if line.hide_characters_after:
            self.on_screen.clear()
            self.gamestate.bus.publish(messages.CharacterHideRequested(None))

        if self.state == DialogState.AWAITING_CHOICE:
            self.gamestate.bus.publish(messages.ChoiceListRequested(line.choices))

    def chapter_title_finished(self) -> None:
        if self.state != DialogState.CHAPTER_TITLE:
            self.logger.debug(f'ignoring chapter title completed in {self.state.name}')
            return
        self.state = DialogState.TYPING
        self._show_line()

    # internals

    def _show_line(self) -> None:
        line = self.current_line
        if line is None:
            self.end()
            return

        self.state = DialogState.TYPING
        bus = self.gamestate.bus

        if line.background:
            bus.publish(messages.BackgroundChangeRequested(line.background, config.Settings.dialogue.BACKGROUND_FADE_SECS))

        for placement in line.characters:
            self.on_screen[placement.position] = placement.character_id
            bus.publish(messages.CharacterDisplayRequested(placement.character_id, placement.emotion, placement.position, placement.fade_in))

        speaker_position = self._speaker_position(line.speaker)
        if speaker_position is not None and line.emotion:
            placed_here = any(p.position == speaker_position for p in line.characters)
            if not placed_here:
                bus.publish(messages.CharacterDisplayRequested(self.on_screen[speaker_position], line.emotion, speaker_position, False))
        bus.publish(messages.CharacterHighlightRequested(speaker_position))

        self.logger.debug(f'{self.dialogue_id}/{self.section}[{self.line_index}]')
        bus.publish(messages.DialogueLineRequested(line.speaker, line.text, line.has_choices, line.text_align))

    def _speaker_position(self, speaker:str) -> Optional[CharacterPosition]:
        if util.is_blank(speaker):
            return None
        character = self.gamestate.characters.find(speaker)
        for position, character_id in self.on_screen.items():
            if character_id == speaker or (character is not None and character_id == character.character_id):
                return position
        return None

    def _attributed_speaker(self) -> Optional[str]:
        """ Nearest named speaker at or before the current line, within the
        current section. """
        assert self.graph is not None and self.section is not None
        lines = self.graph.lines(self.section)
        for i in range(min(self.line_index, len(lines) - 1), -1, -1):
            if not util.is_blank(lines[i].speaker):
                return lines[i].speaker
        return None

    def _apply_choice_effects(self, choice:dialog.DialogChoice) -> None:
        if choice.affection_change != 0:
            speaker = self._attributed_speaker()
            if speaker is None:
                self.logger.warning(f'no speaker to attribute affection {choice.affection_change:+d} for {choice}')
            else:
                character = self.gamestate.characters.find(speaker)
                character_id = character.character_id if character is not None else speaker
                self.gamestate.state.add_affection(character_id, choice.affection_change)

        if choice.flag:
            self.gamestate.state.set_flag(choice.flag)

    def _resolve_choice(self, choice:dialog.DialogChoice) -> None:
        self.logger.info(f'chose {choice}')
        self._apply_choice_effects(choice)

        # effects publish notifications, a handler may have ended us
        if not self.is_active:
            return

        assert self.graph is not None
        if choice.is_jump:
            assert choice.goto is not None
            if not self.graph.has_section(choice.goto):
                self.logger.error(f'dialogue {self.dialogue_id} has no section "{choice.goto}", ending')
                self.end()
                return
            self.section = choice.goto
            self.line_index = 0
            self._show_line()
        else:
            next_dialogue_id = choice.next_dialogue_id
            self.end()
            if next_dialogue_id:
                self.start(next_dialogue_id)

    # bus handlers

    def _handle_advance(self, message:messages.AdvanceRequested) -> None:
        self.advance()

    def _handle_choice(self, message:messages.ChoiceSelected) -> None:
        self.choose(message.index)

    def _handle_typing_completed(self, message:messages.TypingCompleted) -> None:
        self.typing_finished()

    def _handle_chapter_title_completed(self, message:messages.ChapterTitleCompleted) -> None:
        self.chapter_title_finished()
