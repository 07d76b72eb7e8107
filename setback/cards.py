# setback/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence
import enum
import random


class Suit(enum.Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    @property
    def same_color(self) -> "Suit":
        """The other suit of this suit's color (hearts <-> diamonds, clubs <-> spades)."""
        return _SAME_COLOR[self]

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]


_SAME_COLOR = {
    Suit.HEARTS: Suit.DIAMONDS,
    Suit.DIAMONDS: Suit.HEARTS,
    Suit.CLUBS: Suit.SPADES,
    Suit.SPADES: Suit.CLUBS,
}

_SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


class Rank(enum.Enum):
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "jack"
    QUEEN = "queen"
    KING = "king"
    ACE = "ace"
    JOKER = "joker"


STANDARD_RANKS: List[Rank] = [r for r in Rank if r is not Rank.JOKER]

RANK_VALUES: Dict[Rank, int] = {
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 11,
    Rank.QUEEN: 12,
    Rank.KING: 13,
    Rank.ACE: 14,
    Rank.JOKER: 15,
}

# Card-point values toward the "game" category.
GAME_POINTS: Dict[Rank, int] = {
    Rank.JACK: 1,
    Rank.QUEEN: 2,
    Rank.KING: 3,
    Rank.ACE: 4,
    Rank.TEN: 10,
}

_RANK_CODES = {
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

DECK_SIZE = 53


@dataclass(frozen=True)
class Card:
    """
    A Setback card.

    - Standard cards: suit in Suit, rank any Rank except JOKER.
    - The joker: rank=JOKER, suit=None. It belongs to no suit.
    """
    rank: Rank
    suit: Optional[Suit] = None

    def __post_init__(self) -> None:
        if self.rank is Rank.JOKER:
            if self.suit is not None:
                raise ValueError("The joker has no suit")
        elif self.suit is None:
            raise ValueError("Standard cards must have a suit")

    @property
    def is_joker(self) -> bool:
        return self.rank is Rank.JOKER

    @property
    def value(self) -> int:
        return rank_value(self.rank)

    @property
    def game_points(self) -> int:
        return card_points(self)

    @property
    def code(self) -> str:
        """Short code such as "10H", "JS" or "JOKER"."""
        if self.is_joker:
            return "JOKER"
        rank_code = _RANK_CODES.get(self.rank, self.rank.value)
        return f"{rank_code}{self.suit.name[0]}"

    def __str__(self) -> str:
        if self.is_joker:
            return "Joker"
        rank_code = _RANK_CODES.get(self.rank, self.rank.value)
        return f"{rank_code}{self.suit.symbol}"


JOKER = Card(Rank.JOKER)


def rank_value(rank: Rank) -> int:
    """Severity of a rank: 2..10 face value, J=11, Q=12, K=13, A=14, joker=15."""
    return RANK_VALUES[rank]


def card_points(card: Card) -> int:
    """Game-point value of a card (jack 1, queen 2, king 3, ace 4, ten 10, else 0)."""
    return GAME_POINTS.get(card.rank, 0)


def create_deck() -> List[Card]:
    """The 53-card deck in canonical order: four suits x 13 ranks, then the joker."""
    deck = [Card(rank, suit) for suit in Suit for rank in STANDARD_RANKS]
    deck.append(JOKER)
    if len(deck) != DECK_SIZE:
        raise RuntimeError("Deck must contain exactly 53 cards")
    return deck


def shuffle_deck(
    deck: Sequence[Card],
    rng: Optional[random.Random] = None,
) -> List[Card]:
    """
    Return a uniformly shuffled copy of `deck`; the input is left untouched.

    `random.shuffle` is a Fisher-Yates shuffle, so every permutation is equally
    likely. Uses the provided RNG if given.
    """
    shuffled = list(deck)
    if rng is None:
        random.shuffle(shuffled)
    else:
        rng.shuffle(shuffled)
    return shuffled


def parse_card(text: str) -> Card:
    """
    Parse a card code: rank then suit letter ("10H", "QS", "2d", "AC") or "JOKER".
    """
    raw = text.strip().upper()
    if raw in ("JOKER", "JK", "*"):
        return JOKER
    if len(raw) < 2:
        raise ValueError(f"Not a card: {text!r}")

    rank_part, suit_part = raw[:-1], raw[-1]
    suit = next((s for s in Suit if s.name[0] == suit_part), None)
    if suit is None:
        raise ValueError(f"Unknown suit in {text!r}")

    codes = {code: rank for rank, code in _RANK_CODES.items()}
    if rank_part in codes:
        return Card(codes[rank_part], suit)
    if rank_part == "T":
        return Card(Rank.TEN, suit)
    for rank in STANDARD_RANKS:
        if rank.value == rank_part:
            return Card(rank, suit)
    raise ValueError(f"Unknown rank in {text!r}")


def format_cards(cards: Iterable[Card]) -> str:
    return " ".join(str(c) for c in cards)


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    data: Dict[str, Any] = {
        "suit": card.suit.value if card.suit is not None else None,
        "rank": card.rank.value,
    }
    if card.is_joker:
        data["isJoker"] = True
    return data


def dict_to_card(data: Dict[str, Any]) -> Card:
    """
    Convert a dict back into a Card.

    A joker may carry any nominal suit (older saves store one); it is dropped.
    """
    rank = Rank(data["rank"])
    if rank is Rank.JOKER or data.get("isJoker"):
        return JOKER
    return Card(rank, Suit(data["suit"]))
