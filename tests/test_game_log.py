# tests/test_game_log.py
import csv
from dataclasses import replace

from setback.game_log import (
    HAND_FIELDNAMES,
    build_hand_score_rows,
    build_trick_history_rows,
    hand_summary_lines,
    write_hand_scores_csv,
)


def test_trick_history_rows(new_game, play_hand):
    state = play_hand(new_game, 4)
    rows = build_trick_history_rows(state)
    assert [r["trick_number"] for r in rows] == [1, 2, 3, 4, 5, 6]
    assert all(r["leader"] == "East" for r in rows)
    assert [r["winner"] for r in rows] == ["South", "East", "West", "East", "South", "East"]
    assert rows[0]["cards"] == "2♥ A♥ 7♣ 2♠"
    assert rows[1]["cards"].startswith("Joker")
    assert rows[0]["trump_suit"] == "hearts"


def test_no_tricks_no_rows(new_game):
    assert build_trick_history_rows(new_game) == []


def test_hand_score_rows(new_game, play_hand):
    state = play_hand(new_game, 4)
    # Hand the deal back to North so the same script plays again.
    state = play_hand(replace(state, current_dealer=0), 2)
    rows = build_hand_score_rows(state)
    assert len(rows) == 2
    first, second = rows
    assert first["dealer"] == "North"
    assert first["bid_made"] is False
    assert (first["delta_0"], first["delta_1"]) == (4, -4)
    assert (first["score_0"], first["score_1"]) == (4, -4)
    assert second["bid_made"] is True
    assert (second["score_0"], second["score_1"]) == (8, -2)
    assert (second["score_0"], second["score_1"]) == state.scores


def test_write_hand_scores_csv(new_game, play_hand, tmp_path):
    state = play_hand(new_game, 2)
    path = tmp_path / "scores.csv"
    write_hand_scores_csv(state, path)
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == HAND_FIELDNAMES
        rows = list(reader)
    assert len(rows) == 1
    assert rows[0]["trump_suit"] == "hearts"
    assert rows[0]["bid_made"] == "True"
    assert rows[0]["score_1"] == "2"


def test_hand_summary_lines(new_game, play_hand):
    state = play_hand(new_game, 4)
    lines = hand_summary_lines(state, state.last_hand)
    assert "High Trump: North & South" in lines
    assert "Joker: East & West" in lines
    assert "East & West bid 4 and took 2 (set)" in lines
    assert lines[-2:] == ["North & South: +4", "East & West: -4"]
