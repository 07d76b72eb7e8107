# tests/test_session.py
import random
from datetime import date

import pytest

from setback.cards import JOKER, Suit, parse_card
from setback.persistence import GameImportError, dumps, loads
from setback.session import GameSession
from setback.state import GamePhase, GameState
from setback.storage import SESSION_KEY, MemorySessionStore

NAMES = ["North", "East", "South", "West"]


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def session(store):
    return GameSession(store, rng=random.Random(5))


def test_new_session_starts_empty(session):
    assert session.state == GameState()
    assert not session.can_undo
    assert not session.can_redo


def test_every_change_is_saved(session, store):
    session.initialize_game(NAMES)
    assert loads(store.items[SESSION_KEY]) == session.state
    session.deal_cards()
    assert loads(store.items[SESSION_KEY]) == session.state


def test_empty_state_is_not_saved(session, store):
    session.update_team_name(0, "Sharks")
    assert SESSION_KEY not in store.items


def test_resume_from_store(session, store, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.place_bid("player-1", 3)

    resumed = GameSession(store)
    assert resumed.state == session.state
    # Resuming starts a fresh history.
    assert not resumed.can_undo


def test_fresh_session_ignores_store(session, store):
    session.initialize_game(NAMES)
    assert GameSession(store, resume=False).state == GameState()


def test_unreadable_save_is_ignored():
    store = MemorySessionStore({SESSION_KEY: "{not json"})
    assert GameSession(store).state == GameState()


def test_new_game_replaces_saved_game(session, store, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.initialize_game(["A", "B", "C", "D"])
    saved = loads(store.items[SESSION_KEY])
    assert saved.phase is GamePhase.DEALING
    assert [p.name for p in saved.players] == ["A", "B", "C", "D"]


def test_seeded_deal_is_reproducible():
    a = GameSession(rng=random.Random(9))
    b = GameSession(rng=random.Random(9))
    for s in (a, b):
        s.initialize_game(NAMES)
        s.deal_cards()
    assert a.state == b.state


def test_first_card_declares_trump(session, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.place_bid("player-1", 6)
    session.play_card("player-1", parse_card("2H"))
    assert session.state.trump_suit is Suit.HEARTS
    assert session.state.points_available.jack_of_trump is True

    # Trump is its own checkpoint.
    session.undo()
    assert session.state.trump_suit is None
    assert session.state.current_trick == (parse_card("2H"),)


def test_led_joker_leaves_trump_open(session, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.place_bid("player-1", 6)
    session.play_card("player-1", JOKER)
    assert session.state.trump_suit is None
    session.play_card("player-2", parse_card("JH"))
    assert session.state.trump_suit is Suit.HEARTS


def test_auto_trump_can_be_turned_off(session, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.place_bid("player-1", 6)
    session.play_card("player-1", parse_card("2H"), auto_trump=False)
    assert session.state.trump_suit is None


def test_rejected_play_does_not_declare_trump(session, scripted_deck):
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    session.place_bid("player-1", 6)
    before = session.state
    assert session.play_card("player-1", parse_card("AH")) is before
    assert session.state.trump_suit is None


def test_undo_redo_are_saved(session, store):
    session.initialize_game(NAMES)
    session.update_player_name("player-0", "Nora")
    session.undo()
    assert loads(store.items[SESSION_KEY]).players[0].name == "North"
    session.redo()
    assert loads(store.items[SESSION_KEY]).players[0].name == "Nora"


def test_export_writes_dated_file(session, tmp_path):
    session.initialize_game(NAMES)
    session.update_team_name(1, "Hustlers")
    path = session.export_game_state(tmp_path / "exports", day=date(2024, 5, 17))
    assert path.name == "setback-game-2024-05-17.json"
    assert loads(path.read_text(encoding="utf-8")) == session.state


def test_import_is_one_undo_step(session, tmp_path, scripted_deck):
    other = GameSession()
    other.initialize_game(["A", "B", "C", "D"])
    other.deal_cards(scripted_deck)
    path = tmp_path / "saved.json"
    path.write_text(dumps(other.state), encoding="utf-8")

    session.initialize_game(NAMES)
    before = session.state
    session.import_game_state(path)
    assert session.state == other.state
    session.undo()
    assert session.state is before


def test_failed_import_leaves_game_untouched(session, store, tmp_path):
    session.initialize_game(NAMES)
    before = session.state
    saved = store.items[SESSION_KEY]

    bad = tmp_path / "bad.json"
    bad.write_text('{"players": []}', encoding="utf-8")
    with pytest.raises(GameImportError):
        session.import_game_state(bad)
    with pytest.raises(GameImportError):
        session.import_game_state(tmp_path / "missing.json")

    assert session.state is before
    assert store.items[SESSION_KEY] == saved
    assert len(session.history.past) == 1


def test_session_without_store(scripted_deck):
    session = GameSession()
    session.initialize_game(NAMES)
    session.deal_cards(scripted_deck)
    assert session.state.phase is GamePhase.BIDDING
