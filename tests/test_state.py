""" Test cases for the StateStore: affection, currency, flags """

from lovesim import messages
from lovesim.core import StateStore, CharacterRegistry, load_character
from . import MessageRecorder

def test_affection_clamps_to_max(gamestate, recorder):
    state = gamestate.state
    state.add_affection("haru", 150)

    assert state.get_affection("haru") == 100
    changes = recorder.of_type(messages.AffectionChanged)
    assert len(changes) == 1
    assert changes[0] == messages.AffectionChanged("haru", 0, 100, 100)

def test_affection_clamps_to_zero(gamestate, recorder):
    state = gamestate.state
    state.add_affection("haru", 10)
    state.add_affection("haru", -50)

    assert state.get_affection("haru") == 0
    assert recorder.of_type(messages.AffectionChanged)[-1].delta == -10

    # already at zero, nothing changes, nothing announced
    recorder.clear()
    state.add_affection("haru", -5)
    assert recorder.of_type(messages.AffectionChanged) == []

def test_affection_bounds_hold(gamestate):
    state = gamestate.state
    for delta in [30, 90, -200, 45, 7, 1000, -3]:
        state.add_affection("mina", delta)
        assert 0 <= state.get_affection("mina") <= state.get_max_affection("mina")
    state.set_affection("mina", -10)
    assert state.get_affection("mina") == 0
    state.set_affection("mina", 999)
    assert state.get_affection("mina") == 50

def test_per_character_max(gamestate):
    assert gamestate.state.get_max_affection("haru") == 100
    assert gamestate.state.get_max_affection("mina") == 50
    # unknown characters get the default cap
    assert gamestate.state.get_max_affection("nobody") == 100

def test_unregistered_character_accepted(gamestate, recorder):
    gamestate.state.add_affection("stranger", 12)
    assert gamestate.state.get_affection("stranger") == 12
    assert gamestate.state.get_tier("stranger") == ""
    assert recorder.of_type(messages.AffectionTierChanged) == []

def test_blank_character_rejected(gamestate, recorder):
    gamestate.state.add_affection("", 10)
    gamestate.state.set_affection(None, 10)
    assert gamestate.state.get_affection("") == 0
    assert recorder.messages == []

def test_set_affection_same_value_is_silent(gamestate, recorder):
    gamestate.state.set_affection("haru", 30)
    recorder.clear()
    gamestate.state.set_affection("haru", 30)
    assert recorder.messages == []

def test_tier_change_notifications(gamestate, recorder):
    state = gamestate.state
    state.add_affection("haru", 10)
    assert recorder.of_type(messages.AffectionTierChanged) == []
    assert state.get_tier("haru") == "A"

    state.add_affection("haru", 10)
    assert recorder.types() == [messages.AffectionChanged, messages.AffectionChanged, messages.AffectionTierChanged]
    assert recorder.of_type(messages.AffectionTierChanged)[0] == messages.AffectionTierChanged("haru", "A", "B")

    state.set_affection("haru", 100)
    assert recorder.of_type(messages.AffectionTierChanged)[-1] == messages.AffectionTierChanged("haru", "B", "E")

def test_set_max_affection(gamestate, recorder):
    state = gamestate.state
    state.set_affection("haru", 80)
    recorder.clear()

    state.set_max_affection("haru", 60)
    assert state.get_max_affection("haru") == 60
    assert state.get_affection("haru") == 60
    # lowering the cap re-clamps without announcing
    assert recorder.messages == []

    state.set_max_affection("haru", -1)
    assert state.get_max_affection("haru") == 60

    state.add_affection("haru", 20)
    assert state.get_affection("haru") == 60

def test_currency(gamestate, recorder):
    state = gamestate.state
    state.add_currency("diamonds", 10)
    assert state.get_currency("diamonds") == 10
    assert recorder.of_type(messages.CurrencyChanged)[0] == messages.CurrencyChanged("diamonds", 0, 10, 10)

    assert state.spend_currency("diamonds", 4)
    assert state.get_currency("diamonds") == 6
    assert recorder.of_type(messages.CurrencyChanged)[-1] == messages.CurrencyChanged("diamonds", 10, 6, -4)

    recorder.clear()
    assert not state.spend_currency("diamonds", 7)
    assert state.get_currency("diamonds") == 6
    assert recorder.messages == []

    # ledgers are independent
    assert state.get_currency("clues") == 0
    assert not state.spend_currency("clues", 1)

def test_currency_rejects_bad_amounts(gamestate, recorder):
    state = gamestate.state
    state.add_currency("clues", 0)
    state.add_currency("clues", -5)
    state.add_currency("", 5)
    assert not state.spend_currency("clues", 0)
    assert not state.spend_currency("clues", -1)
    assert state.get_currency("clues") == 0
    assert recorder.messages == []

def test_flags_idempotent(gamestate):
    state = gamestate.state
    assert not state.is_flag_set("met_mina")
    state.set_flag("met_mina")
    state.set_flag("met_mina")
    assert state.is_flag_set("met_mina")
    assert state.flags == frozenset(["met_mina"])

    state.set_flag("")
    assert not state.is_flag_set("")
    assert len(state.flags) == 1

def test_snapshot_round_trip(gamestate, make_gamestate):
    state = gamestate.state
    state.add_affection("haru", 42)
    state.add_affection("stranger", 7)
    state.set_max_affection("stranger", 10)
    state.add_currency("diamonds", 3)
    state.set_flag("a")
    state.set_flag("b")

    other = make_gamestate()
    other_recorder = MessageRecorder(other.bus)
    other.state.import_snapshot(state.export_snapshot())

    assert other.state.get_affection("haru") == 42
    assert other.state.get_affection("stranger") == 7
    assert other.state.get_max_affection("stranger") == 10
    assert other.state.get_currency("diamonds") == 3
    assert other.state.flags == state.flags
    assert other.state.export_snapshot() == state.export_snapshot()
    # loading restores, it doesn't replay
    assert other_recorder.messages == []

def test_import_none_keeps_state(gamestate):
    gamestate.state.add_affection("haru", 5)
    gamestate.state.import_snapshot(None)
    assert gamestate.state.get_affection("haru") == 5

def test_import_ignores_bad_entries(gamestate, caplog):
    state = gamestate.state
    state.import_snapshot({
        "affection": {"haru": "lots", "mina": 12, "": 3},
        "max_affection": {"mina": -1, "sora": 30},
        "currency": {"diamonds": 2.5, "clues": 4},
        "flags": ["met_mina", 3, ""],
    })
    assert state.get_affection("haru") == 0
    assert state.get_affection("mina") == 12
    assert state.get_max_affection("mina") == 50
    assert state.get_max_affection("sora") == 30
    assert state.get_currency("diamonds") == 0
    assert state.get_currency("clues") == 4
    assert state.flags == {"met_mina"}
    assert "bad affection entry" in caplog.text

    state.import_snapshot({"affection": ["haru"], "flags": "met_mina"})
    assert state.get_affection("mina") == 0
    assert state.flags == set()

    state.add_affection("haru", 5)
    state.import_snapshot("garbage")
    assert state.get_affection("haru") == 5

def test_reset(gamestate):
    state = gamestate.state
    state.add_affection("mina", 20)
    state.set_max_affection("stranger", 5)
    state.add_currency("clues", 2)
    state.set_flag("x")

    state.reset()

    assert state.get_affection("mina") == 0
    assert state.get_currency("clues") == 0
    assert state.flags == frozenset()
    # caps from character definitions survive a reset
    assert state.get_max_affection("mina") == 50
    assert state.get_max_affection("stranger") == 100

def test_standalone_state_store(message_bus):
    characters = CharacterRegistry()
    characters.add(load_character({"character_id": "yui", "max_affection": 30}))
    state = StateStore(message_bus)
    state.initialize_characters(characters)

    state.add_affection("yui", 100)
    assert state.get_affection("yui") == 30
    # default ladder from config
    assert state.get_tier("yui") == "Acquaintance"
