""" Dialogue graphs: lines, choices and named sections """

import logging
from typing import Sequence, Dict, Any, Optional, Mapping

from lovesim import config, util
from lovesim.core import ContentError, CharacterPosition, TextAlign, parse_enum

logger = logging.getLogger(__name__)


class CharacterPlacement:
    def __init__(self, character_id:str, emotion:str, position:CharacterPosition, fade_in:bool=True) -> None:
        self.character_id = character_id
        self.emotion = emotion
        self.position = position
        self.fade_in = fade_in


class DialogChoice:
    """ A player choice. At most one of goto (a section in this graph) and
    next_dialogue_id (another graph) is followed, goto first. With neither,
    choosing ends the dialogue. """

    def __init__(self, text:str, affection_change:int=0, flag:Optional[str]=None, goto:Optional[str]=None, next_dialogue_id:Optional[str]=None) -> None:
        self.text = text
        self.affection_change = affection_change
        self.flag = flag
        self.goto = goto
        self.next_dialogue_id = next_dialogue_id

    def __repr__(self) -> str:
        return f'DialogChoice({self.text!r}, goto={self.goto!r}, next={self.next_dialogue_id!r})'

    @property
    def is_jump(self) -> bool:
        return not util.is_blank(self.goto)


class DialogLine:
    def __init__(
        self,
        speaker:str,
        text:str,
        choices:Sequence[DialogChoice]=(),
        emotion:Optional[str]=None,
        background:Optional[str]=None,
        characters:Sequence[CharacterPlacement]=(),
        text_align:Optional[TextAlign]=None,
        hide_characters_after:bool=False,
    ) -> None:
        self.speaker = speaker
        self.text = text
        self.choices = tuple(choices)
        self.emotion = emotion
        self.background = background
        self.characters = tuple(characters)
        self.text_align = text_align
        self.hide_characters_after = hide_characters_after

    @property
    def has_choices(self) -> bool:
        return len(self.choices) > 0

    @property
    def is_narration(self) -> bool:
        return util.is_blank(self.speaker)


class DialogGraph:
    def __init__(self, dialogue_id:str, sections:Mapping[str, Sequence[DialogLine]], start_section:str, chapter_title:Optional[str]=None) -> None:
        self.dialogue_id = dialogue_id
        self.sections = {k: tuple(v) for k, v in sections.items()}
        self.start_section = start_section
        self.chapter_title = chapter_title

    def has_section(self, section:str) -> bool:
        return section in self.sections

    def lines(self, section:str) -> Sequence[DialogLine]:
        return self.sections[section]


def _normalize(data:Mapping[str, Any]) -> Dict[str, Any]:
    """ Accept camelCase keys from content authored for other tools. """
    if not isinstance(data, Mapping):
        raise ContentError(f'expected a table, got {data!r}')
    return {util.camel_to_snake(k): v for k, v in data.items()}


def _optional_str(data:Mapping[str, Any], *keys:str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if not util.is_blank(value):
            if not isinstance(value, str):
                raise ContentError(f'{key} must be a string, got {value!r}')
            return value
    return None


def load_dialog_choice(choice_data:Mapping[str, Any]) -> DialogChoice:
    choice_data = _normalize(choice_data)
    if "text" not in choice_data:
        raise ContentError(f'choice has no text: {choice_data}')
    affection_change = choice_data.get("affection_change", 0)
    if not isinstance(affection_change, int):
        raise ContentError(f'affection_change must be an int, got {affection_change!r}')

    return DialogChoice(
        choice_data["text"],
        affection_change,
        _optional_str(choice_data, "flag", "flag_to_set"),
        _optional_str(choice_data, "goto"),
        _optional_str(choice_data, "next", "next_dialogue_id"),
    )


def load_character_placement(placement_data:Mapping[str, Any]) -> CharacterPlacement:
    placement_data = _normalize(placement_data)
    character_id = _optional_str(placement_data, "character_id", "id")
    if character_id is None:
        raise ContentError(f'character placement has no character_id: {placement_data}')
    return CharacterPlacement(
        character_id,
        placement_data.get("emotion", "default"),
        parse_enum(CharacterPosition, placement_data.get("position", "center")),
        bool(placement_data.get("fade_in", True)),
    )


def load_dialog_line(line_data:Mapping[str, Any]) -> DialogLine:
    line_data = _normalize(line_data)
    if "text" not in line_data:
        raise ContentError(f'line has no text: {line_data}')

    text_align = None
    if not util.is_blank(line_data.get("text_align")):
        text_align = parse_enum(TextAlign, line_data["text_align"])

    return DialogLine(
        line_data.get("speaker") or "",
        line_data["text"],
        [load_dialog_choice(x) for x in line_data.get("choices") or []],
        emotion=_optional_str(line_data, "emotion"),
        background=_optional_str(line_data, "background"),
        characters=[load_character_placement(x) for x in line_data.get("characters") or []],
        text_align=text_align,
        hide_characters_after=bool(line_data.get("hide_characters_after", False)),
    )


def load_dialog_data(dialogue_id:str, dialog_data:Mapping[str, Any]) -> DialogGraph:
    """ Parses one dialogue graph.

    A graph is either a flat "lines" list or a "sections" table of named line
    lists. When both are present the sections win. A graph with neither is
    malformed.
    """
    dialog_data = _normalize(dialog_data)
    sections_data = dialog_data.get("sections")
    lines_data = dialog_data.get("lines")

    sections:Dict[str, list[DialogLine]] = {}
    if sections_data:
        if not isinstance(sections_data, Mapping):
            raise ContentError(f'sections in {dialogue_id} must be a table of line lists')
        if lines_data:
            logger.debug(f'{dialogue_id} has both lines and sections, using sections')
        for section_name, section_lines in sections_data.items():
            if not isinstance(section_lines, list):
                raise ContentError(f'section {section_name} in {dialogue_id} must be a list of lines')
            sections[section_name] = [load_dialog_line(x) for x in section_lines]
        start_section = dialog_data.get("start_section", config.Settings.dialogue.DEFAULT_SECTION)
    elif lines_data:
        if not isinstance(lines_data, list):
            raise ContentError(f'lines in {dialogue_id} must be a list')
        start_section = config.Settings.dialogue.FLAT_SECTION
        sections[start_section] = [load_dialog_line(x) for x in lines_data]
    else:
        raise ContentError(f'dialogue {dialogue_id} has neither lines nor sections')

    return DialogGraph(
        dialog_data.get("dialogue_id") or dialogue_id,
        sections,
        start_section,
        chapter_title=_optional_str(dialog_data, "chapter_title"),
    )


def validate_graph(graph:DialogGraph) -> list[str]:
    """ Content checks that don't stop a graph from loading.

    Returns a list of human readable problems, e.g. choices that both jump
    within the graph and chain to another graph (the jump wins at runtime).
    """
    problems = []
    if not graph.has_section(graph.start_section):
        problems.append(f'{graph.dialogue_id}: start section "{graph.start_section}" does not exist')
    for section_name, lines in graph.sections.items():
        if len(lines) == 0:
            problems.append(f'{graph.dialogue_id}/{section_name}: section has no lines')
        for i, line in enumerate(lines):
            for j, choice in enumerate(line.choices):
                where = f'{graph.dialogue_id}/{section_name}[{i}] choice {j}'
                if choice.goto and choice.next_dialogue_id:
                    problems.append(f'{where}: has both goto "{choice.goto}" and next "{choice.next_dialogue_id}", goto wins')
                if choice.goto and not graph.has_section(choice.goto):
                    problems.append(f'{where}: goto unknown section "{choice.goto}"')
    return problems
