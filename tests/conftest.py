# tests/conftest.py
from typing import Dict, List

import pytest

from setback.cards import Suit, create_deck, parse_card
from setback.engine import (
    CompleteTrick,
    DealCards,
    InitializeGame,
    PlaceBid,
    PlayCard,
    SetTrump,
    game_reducer,
)
from setback.state import GameState

NAMES = ("North", "East", "South", "West")

# Hands by seat for a dealer at seat 0. East (seat 1) declares hearts.
# Category holders: high trump AH (South), low trump 2H (East), jack of
# trump JH (South), off jack JD (South), joker (East), game points South.
# So North/South take 4 points and East/West take 2.
SCRIPTED_HANDS: Dict[int, List[str]] = {
    0: ["2S", "6S", "7S", "8S", "9S", "2C"],
    1: ["2H", "JOKER", "3C", "4C", "5C", "6C"],
    2: ["AH", "JH", "JD", "10S", "10C", "KS"],
    3: ["7C", "8C", "9C", "3S", "4S", "5S"],
}


def deck_for_hands(hands: Dict[int, List[str]], dealer: int = 0):
    """A 53-card deck that deals `hands` (by seat) when `dealer` deals."""
    by_seat = {seat: [parse_card(c) for c in cards] for seat, cards in hands.items()}
    top = []
    for rnd in range(6):
        for offset in range(1, 5):
            top.append(by_seat[(dealer + offset) % 4][rnd])
    rest = [c for c in create_deck() if c not in top]
    return tuple(top + rest)


def scripted_plays(hands: Dict[int, List[str]], leader: int):
    """(seat, card) in play order: trick k uses card k of every hand."""
    plays = []
    for rnd in range(6):
        for offset in range(4):
            seat = (leader + offset) % 4
            plays.append((seat, parse_card(hands[seat][rnd])))
    return plays


def play_scripted_hand(state: GameState, bid_points: int) -> GameState:
    """Deal SCRIPTED_HANDS, let East win the bid at `bid_points`, play all six tricks."""
    state = game_reducer(state, DealCards(deck_for_hands(SCRIPTED_HANDS, state.current_dealer)))
    state = game_reducer(state, PlaceBid("player-1", bid_points))
    if bid_points < 6:
        state = game_reducer(state, PlaceBid("player-2", 0, True))
        state = game_reducer(state, PlaceBid("player-3", 0, True))
        state = game_reducer(state, PlaceBid("player-0", 0, True))
    for idx, (seat, card) in enumerate(scripted_plays(SCRIPTED_HANDS, leader=1)):
        state = game_reducer(state, PlayCard(f"player-{seat}", card))
        if idx == 0:
            state = game_reducer(state, SetTrump(Suit.HEARTS))
        if idx % 4 == 3:
            state = game_reducer(state, CompleteTrick())
    return state


@pytest.fixture
def new_game() -> GameState:
    return game_reducer(GameState(), InitializeGame(NAMES))


@pytest.fixture
def dealt_game(new_game) -> GameState:
    return game_reducer(new_game, DealCards(deck_for_hands(SCRIPTED_HANDS)))


@pytest.fixture
def play_hand():
    return play_scripted_hand


@pytest.fixture
def scripted_deck():
    return deck_for_hands(SCRIPTED_HANDS)


@pytest.fixture
def east_leads_plays():
    return scripted_plays(SCRIPTED_HANDS, leader=1)
