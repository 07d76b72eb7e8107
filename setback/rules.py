# setback/rules.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .cards import Card, Rank, Suit
from .state import NUM_PLAYERS, HandPoints


def lead_suit_of(trick: Sequence[Card]) -> Optional[Suit]:
    """Suit of the first non-joker card in the trick, or None if there is none."""
    for card in trick:
        if not card.is_joker:
            return card.suit
    return None


def _beats(card: Card, best: Card, lead_suit: Optional[Suit], trump_suit: Optional[Suit]) -> bool:
    if card.is_joker:
        return True
    if best.is_joker:
        return False

    card_trump = trump_suit is not None and card.suit == trump_suit
    best_trump = trump_suit is not None and best.suit == trump_suit
    if card_trump and not best_trump:
        return True
    if card_trump and best_trump:
        return card.value > best.value
    if best_trump:
        return False

    card_lead = lead_suit is not None and card.suit == lead_suit
    best_lead = lead_suit is not None and best.suit == lead_suit
    if card_lead and best_lead:
        return card.value > best.value
    # Only reachable when the trick was led by something off the lead suit.
    return card_lead and not best_lead


def resolve_trick(
    trick: Sequence[Card],
    lead_suit: Optional[Suit],
    trump_suit: Optional[Suit],
) -> int:
    """
    Return the index (in play order) of the card that wins the trick.

    Priority:
    1. The joker, wherever it sits.
    2. Highest card of the trump suit.
    3. Highest card of the lead suit.
    Anything else is a throw-off and never wins. Following suit is not checked.
    """
    if not trick:
        raise ValueError("Cannot determine winner of an empty trick")

    best_index = 0
    for idx in range(1, len(trick)):
        if _beats(trick[idx], trick[best_index], lead_suit, trump_suit):
            best_index = idx
    return best_index


def trick_winner_seat(
    trick: Sequence[Card],
    leader: int,
    trump_suit: Optional[Suit],
) -> int:
    """Absolute seat that wins `trick`, given the seat that led it."""
    offset = resolve_trick(trick, lead_suit_of(trick), trump_suit)
    return (leader + offset) % NUM_PLAYERS


def score_hand(
    tricks: Sequence[Sequence[Card]],
    trump_suit: Suit,
    leaders: Optional[Sequence[int]] = None,
) -> HandPoints:
    """
    Attribute the six scoring categories for a hand.

    Without `leaders`, winners are positions within the trick (offset 0..3) and
    the caller maps them to seats. With `leaders` (the seat that led each
    trick), winners are absolute seats.

    Game points go to the strict maximum; ties fall to the lowest index, and
    -1 is returned when no card points were taken at all.
    """
    if leaders is not None and len(leaders) != len(tricks):
        raise ValueError("leaders must have one entry per trick")

    off_suit = trump_suit.same_color
    high: Tuple[int, int] = (-1, -1)  # (rank value, position)
    low: Tuple[int, int] = (16, -1)
    jack_winner: Optional[int] = None
    off_jack_winner: Optional[int] = None
    joker_winner: Optional[int] = None
    game_points: List[int] = [0] * NUM_PLAYERS

    for trick_index, trick in enumerate(tricks):
        for offset, card in enumerate(trick):
            if leaders is None:
                position = offset
            else:
                position = (leaders[trick_index] + offset) % NUM_PLAYERS

            game_points[position] += card.game_points

            if card.is_joker:
                joker_winner = position
                continue

            if card.suit == trump_suit:
                if card.value > high[0]:
                    high = (card.value, position)
                if card.value < low[0]:
                    low = (card.value, position)
                if card.rank is Rank.JACK:
                    jack_winner = position
            elif card.rank is Rank.JACK and card.suit == off_suit:
                off_jack_winner = position

    best = max(game_points)
    game_winner = game_points.index(best) if best > 0 else -1

    return HandPoints(
        high_trump_winner=high[1],
        low_trump_winner=low[1],
        jack_trump_winner=jack_winner,
        off_jack_winner=off_jack_winner,
        joker_winner=joker_winner,
        game_points_winner=game_winner,
    )


def points_won_by_partnership(
    points: HandPoints,
    seat_partnership: Dict[int, int],
) -> Tuple[int, int]:
    """One point per claimed category to the partnership holding the winning seat."""
    won = [0, 0]
    for _category, seat in points.awarded():
        won[seat_partnership[seat]] += 1
    return won[0], won[1]


def score_deltas(
    points_won: Tuple[int, int],
    declarer: int,
    bid: int,
) -> Tuple[int, int]:
    """
    Score change per partnership for a finished hand.

    The declaring partnership keeps everything it won if that meets its bid,
    otherwise it is set back by the full bid. The other side always keeps
    what it won.
    """
    deltas = list(points_won)
    if points_won[declarer] < bid:
        deltas[declarer] = -bid
    return deltas[0], deltas[1]
