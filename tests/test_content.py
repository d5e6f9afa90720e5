""" Test cases for content sources and the bundled sample story """

import json

import pytest

from lovesim import content, dialog, events
from lovesim.core import CharacterRegistry, ContentError

def test_mapping_content(content_source):
    assert content_source.fetch_dialogue("flat")["lines"][0]["text"] == "It is morning."
    assert "flat" in content_source.dialogue_ids()
    with pytest.raises(ContentError):
        content_source.fetch_dialogue("missing")

def test_sample_characters():
    registry = CharacterRegistry()
    registry.load(content.sample_content())
    assert set(registry.character_ids()) == {"haru", "mina"}
    assert registry.get("mina").max_affection == 120
    assert registry.get("mina").tier_of(100) == "Sweetheart"
    assert registry.get("haru").tier_of(45) == "Friend"

def test_sample_events():
    source = content.sample_content()
    event_ids = [x["event_id"] for x in source.fetch_events()]
    assert event_ids == ["prologue", "cafe_first_visit", "library_study", "park_evening"]
    for event_data in source.fetch_events():
        event = events.load_story_event(event_data)
        assert event.dialogue_id in source.dialogue_ids()

def test_sample_idle_lines():
    groups = [events.load_idle_line_group(x) for x in content.sample_content().fetch_idle_lines()]
    assert len(groups) == 4
    assert all(len(x.lines) > 0 for x in groups)

def test_sample_dialogues_are_clean():
    source = content.sample_content()
    assert len(source.dialogue_ids()) > 0
    for dialogue_id in source.dialogue_ids():
        graph = dialog.load_dialog_data(dialogue_id, source.fetch_dialogue(dialogue_id))
        assert dialog.validate_graph(graph) == []
        for lines in graph.sections.values():
            for line in lines:
                for choice in line.choices:
                    if choice.next_dialogue_id:
                        assert choice.next_dialogue_id in source.dialogue_ids()

def test_toml_directory(tmp_path):
    (tmp_path / "dialogues").mkdir()
    (tmp_path / "events").mkdir()
    (tmp_path / "events.toml").write_text('[a]\ndialogue_id = "one"\n')
    (tmp_path / "events" / "20_more.toml").write_text('[c]\ndialogue_id = "one"\n')
    (tmp_path / "events" / "10_some.toml").write_text('[b]\ndialogue_id = "two"\npriority = 3\n')
    (tmp_path / "events" / "notes.txt").write_text("not an event")
    (tmp_path / "dialogues" / "one.toml").write_text('[[lines]]\ntext = "hi"\n')
    (tmp_path / "dialogues" / "two.json").write_text(json.dumps({"lines": [{"text": "hello", "choices": [{"text": "ok", "nextDialogueId": "one"}]}]}))

    source = content.TomlContentSource(str(tmp_path))
    assert [x["event_id"] for x in source.fetch_events()] == ["a", "b", "c"]
    assert source.dialogue_ids() == ["one", "two"]
    assert source.fetch_dialogue("one")["lines"][0]["text"] == "hi"
    graph = dialog.load_dialog_data("two", source.fetch_dialogue("two"))
    assert graph.lines("main")[0].choices[0].next_dialogue_id == "one"

    # missing optional files are empty, not errors
    assert source.fetch_characters() == []
    assert source.fetch_idle_lines() == []

def test_toml_errors(tmp_path):
    (tmp_path / "dialogues").mkdir()
    (tmp_path / "dialogues" / "broken.toml").write_text("[[lines]]\ntext = bare words\n")
    (tmp_path / "events.toml").write_text('not_a_table = 3\n')

    source = content.TomlContentSource(str(tmp_path))
    with pytest.raises(ContentError):
        source.fetch_dialogue("broken")
    with pytest.raises(ContentError):
        source.fetch_dialogue("missing")
    with pytest.raises(ContentError):
        source.fetch_dialogue("../broken")
    with pytest.raises(ContentError):
        source.fetch_dialogue("")
    with pytest.raises(ContentError):
        source.fetch_events()
