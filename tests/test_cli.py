# tests/test_cli.py
import io
import random
from dataclasses import replace

import pytest

from setback.cli import main, parse_args, render_state, run_table
from setback.persistence import dumps
from setback.session import GameSession
from setback.state import GamePhase, GameState
from setback.storage import MemorySessionStore


@pytest.fixture
def session():
    return GameSession(MemorySessionStore(), rng=random.Random(2))


def run(session, tmp_path, *lines):
    out = io.StringIO()
    run_table(session, lines, out, tmp_path)
    return out.getvalue()


def test_parse_args():
    args = parse_args(["play", "--fresh", "--seed", "3"])
    assert args.command == "play"
    assert args.fresh and args.seed == 3
    args = parse_args(["--log-level", "DEBUG", "relay", "--port", "4000"])
    assert args.log_level == "DEBUG"
    assert args.port == 4000 and args.host is None
    args = parse_args(["chart", "game.json"])
    assert args.out == "score_progression.png"


def test_render_empty_table():
    assert "No game yet" in render_state(GameState())


def test_new_and_deal(session, tmp_path):
    text = run(session, tmp_path, "new", "deal")
    assert "Phase: dealing" in text
    assert "Phase: bidding" in text
    assert "To act: East (seat 1)" in text
    assert "Bid 2-6 or pass" in text


def test_new_with_names(session, tmp_path):
    run(session, tmp_path, "new Ann Ben Cat Dan")
    assert [p.name for p in session.state.players] == ["Ann", "Ben", "Cat", "Dan"]
    text = run(session, tmp_path, "new Ann Ben")
    assert "Give exactly four names." in text


def test_bidding_and_play(session, tmp_path, scripted_deck):
    run(session, tmp_path, "new")
    session.deal_cards(scripted_deck)
    text = run(session, tmp_path, "bid 3", "pass", "pass", "pass", "play 2H")
    assert session.state.current_bid.points == 3
    assert session.state.trump_suit.value == "hearts"
    assert "Trump: hearts" in text
    assert "Trick: East: 2♥" in text


def test_illegal_play_is_reported(session, tmp_path, scripted_deck):
    run(session, tmp_path, "new")
    session.deal_cards(scripted_deck)
    text = run(session, tmp_path, "bid 6", "play AH", "play XYZ")
    assert "Cannot play A♥ now." in text
    assert "Unknown suit" in text


def test_undo_redo_commands(session, tmp_path):
    run(session, tmp_path, "new", "rename 0 Nora")
    assert session.state.players[0].name == "Nora"
    run(session, tmp_path, "undo")
    assert session.state.players[0].name == "North"
    run(session, tmp_path, "redo")
    assert session.state.players[0].name == "Nora"


def test_team_command(session, tmp_path):
    text = run(session, tmp_path, "new", "team 2 Night Owls")
    assert "Night Owls: 0" in text
    run(session, tmp_path, "team 2")
    assert session.state.partnership_name(1) == "East & West"


def test_full_hand_through_the_table(session, tmp_path, scripted_deck, east_leads_plays):
    run(session, tmp_path, "new")
    session.deal_cards(scripted_deck)
    lines = ["bid 4", "pass", "pass", "pass"]
    for idx, (_seat, card) in enumerate(east_leads_plays):
        lines.append(f"play {card.code}")
        if idx % 4 == 3:
            lines.append("complete")
    text = run(session, tmp_path, *lines, "tricks", "scores")
    assert session.state.scores == (4, -4)
    assert "East & West bid 4 and took 2 (set)" in text
    assert "6. " in text
    assert (tmp_path / "hand_scores.csv").exists()


def test_export_and_import(session, tmp_path):
    run(session, tmp_path, "new")
    text = run(session, tmp_path, f"export {tmp_path / 'out'}")
    saved = next((tmp_path / "out").glob("setback-game-*.json"))
    assert f"Saved {saved}" in text

    run(session, tmp_path, "rename 1 Eve")
    run(session, tmp_path, f"import {saved}")
    assert session.state.players[1].name == "East"


def test_import_error_is_reported(session, tmp_path):
    run(session, tmp_path, "new")
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    before = session.state
    text = run(session, tmp_path, f"import {bad}")
    assert "Error importing game state:" in text
    assert session.state is before


def test_unknown_command_and_quit(session, tmp_path):
    text = run(session, tmp_path, "dance", "help", "quit", "new")
    assert "Unknown command 'dance'" in text
    assert "Commands:" in text
    assert session.state == GameState()


def test_chart_command(tmp_path, monkeypatch, new_game, play_hand):
    monkeypatch.setenv("SETBACK_SAVES_DIR", str(tmp_path / "saves"))
    game = tmp_path / "game.json"
    game.write_text(dumps(play_hand(new_game, 2)), encoding="utf-8")

    main(["chart", str(game), "--out", "progress.png"])
    assert (tmp_path / "saves" / "progress.png").exists()
    assert (tmp_path / "saves" / "progress.csv").exists()


def test_chart_command_rejects_bad_game(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("nope", encoding="utf-8")
    with pytest.raises(SystemExit):
        main(["chart", str(bad)])


def test_bid_above_six_is_refused(session, tmp_path, scripted_deck):
    run(session, tmp_path, "new")
    session.deal_cards(scripted_deck)
    before = session.state
    text = run(session, tmp_path, "bid 9")
    assert "Bid points must be between 0 and 6. Usage: bid POINTS" in text
    assert session.state is before
    assert session.state.phase is GamePhase.BIDDING


def test_game_over_names_the_winner_or_a_tie(new_game, play_hand):
    finished = replace(play_hand(new_game, 2), phase=GamePhase.GAME_OVER)

    won = replace(
        finished,
        partnerships=(
            replace(finished.partnerships[0], score=21),
            replace(finished.partnerships[1], score=23),
        ),
    )
    assert "Game over: East & West win." in render_state(won)

    tied = replace(
        finished,
        partnerships=(
            replace(finished.partnerships[0], score=22),
            replace(finished.partnerships[1], score=22),
        ),
    )
    text = render_state(tied)
    assert "Game over: tied at 22." in text
    assert "win." not in text
