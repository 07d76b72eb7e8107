# setback/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, List

from .cards import format_cards
from .rules import trick_winner_seat
from .state import GameState, HandResult

TRICK_FIELDNAMES = [
    "trick_number",
    "leader",
    "winner",
    "cards",
    "trump_suit",
]

HAND_FIELDNAMES = [
    "hand_index",
    "dealer",
    "trump_suit",
    "declarer",
    "bid",
    "bid_made",
    "points_won_0",
    "points_won_1",
    "delta_0",
    "delta_1",
    "score_0",
    "score_1",
]

CATEGORY_LABELS = {
    "highTrump": "High Trump",
    "lowTrump": "Low Trump",
    "jackOfTrump": "Jack of Trump",
    "offJack": "Off Jack",
    "joker": "Joker",
    "gamePoints": "Game Points",
}


def build_trick_history_rows(state: GameState) -> List[Dict[str, Any]]:
    """One row per completed trick of the current hand."""
    rows: List[Dict[str, Any]] = []
    for idx, (trick, leader) in enumerate(zip(state.tricks, state.trick_leaders)):
        winner = trick_winner_seat(trick, leader, state.trump_suit)
        rows.append(
            {
                "trick_number": idx + 1,
                "leader": state.players[leader].name,
                "winner": state.players[winner].name,
                "cards": format_cards(trick),
                "trump_suit": state.trump_suit.value if state.trump_suit else None,
            }
        )
    return rows


def build_hand_score_rows(state: GameState) -> List[Dict[str, Any]]:
    """
    One row per completed hand with running partnership totals.

    Totals start from zero, so they only match the live scores for games
    whose whole hand history is in the state.
    """
    running = [0, 0]
    rows: List[Dict[str, Any]] = []
    for idx, result in enumerate(state.hand_results):
        running[0] += result.score_deltas[0]
        running[1] += result.score_deltas[1]
        rows.append(
            {
                "hand_index": idx,
                "dealer": state.players[result.dealer].name if state.players else result.dealer,
                "trump_suit": result.trump_suit.value,
                "declarer": result.declarer,
                "bid": result.bid,
                "bid_made": result.bid_made,
                "points_won_0": result.points_won[0],
                "points_won_1": result.points_won[1],
                "delta_0": result.score_deltas[0],
                "delta_1": result.score_deltas[1],
                "score_0": running[0],
                "score_1": running[1],
            }
        )
    return rows


def write_hand_scores_csv(state: GameState, path) -> None:
    """
    Write per-hand scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    rows = build_hand_score_rows(state)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=HAND_FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in HAND_FIELDNAMES})


def hand_summary_lines(state: GameState, result: HandResult) -> List[str]:
    """Human-readable breakdown of who took each category in a hand."""
    lines = []
    for category, seat in result.points.awarded():
        team = state.partnership_of_seat(seat)
        team_label = state.partnership_name(team) if team is not None else f"seat {seat}"
        lines.append(f"{CATEGORY_LABELS[category]}: {team_label}")

    declarer = state.partnership_name(result.declarer)
    verdict = "made" if result.bid_made else "set"
    lines.append(
        f"{declarer} bid {result.bid} and took {result.points_won[result.declarer]} ({verdict})"
    )
    for idx in (0, 1):
        lines.append(f"{state.partnership_name(idx)}: {result.score_deltas[idx]:+d}")
    return lines
