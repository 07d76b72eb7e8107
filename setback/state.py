# setback/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
import enum

from .cards import Card, Suit

NUM_PLAYERS = 4
CARDS_PER_HAND = 6
TRICKS_PER_HAND = 6
DEFAULT_WINNING_SCORE = 21


class GamePhase(enum.Enum):
    DEALING = "dealing"
    BIDDING = "bidding"
    PLAYING = "playing"
    SCORING = "scoring"
    GAME_OVER = "gameOver"


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    position: int
    hand: Tuple[Card, ...] = ()
    is_dealer: bool = False


@dataclass(frozen=True)
class Partnership:
    # Seated opposite each other. Only ids are kept; names are resolved
    # against GameState.players so a rename can never diverge.
    player_ids: Tuple[str, ...] = ()
    score: int = 0
    team_name: Optional[str] = None


@dataclass(frozen=True)
class Bid:
    player_id: str
    points: int
    is_pass: bool


@dataclass(frozen=True)
class PointsAvailable:
    high_trump: bool = True
    low_trump: bool = True
    jack_of_trump: bool = False
    off_jack: bool = False
    joker: bool = False
    game_points: bool = True


@dataclass(frozen=True)
class HandPoints:
    """
    Winners of the six scoring categories.

    High, low and game are -1 when nobody claimed them; jack, off jack and
    joker are None when the card never appeared in the hand.
    """
    high_trump_winner: int = -1
    low_trump_winner: int = -1
    jack_trump_winner: Optional[int] = None
    off_jack_winner: Optional[int] = None
    joker_winner: Optional[int] = None
    game_points_winner: int = -1

    def awarded(self) -> Iterator[Tuple[str, int]]:
        """Yield (category, winner) for every category that was claimed."""
        for name, winner in (
            ("highTrump", self.high_trump_winner),
            ("lowTrump", self.low_trump_winner),
            ("jackOfTrump", self.jack_trump_winner),
            ("offJack", self.off_jack_winner),
            ("joker", self.joker_winner),
            ("gamePoints", self.game_points_winner),
        ):
            if winner is not None and winner != -1:
                yield name, winner


@dataclass(frozen=True)
class HandResult:
    """Outcome of one completed hand. Category winners are absolute seats."""
    points: HandPoints
    trump_suit: Suit
    dealer: int
    declarer: int  # partnership index
    bid: int
    points_won: Tuple[int, int]
    score_deltas: Tuple[int, int]

    @property
    def bid_made(self) -> bool:
        return self.points_won[self.declarer] >= self.bid


@dataclass(frozen=True)
class GameState:
    players: Tuple[Player, ...] = ()
    partnerships: Tuple[Partnership, Partnership] = (Partnership(), Partnership())
    deck: Tuple[Card, ...] = ()
    current_trick: Tuple[Card, ...] = ()
    trump_suit: Optional[Suit] = None
    bids: Tuple[Bid, ...] = ()
    current_bid: Optional[Bid] = None
    current_player: int = 0
    phase: GamePhase = GamePhase.DEALING
    points_available: PointsAvailable = field(default_factory=PointsAvailable)
    tricks: Tuple[Tuple[Card, ...], ...] = ()
    trick_leaders: Tuple[int, ...] = ()
    current_dealer: int = 0
    winning_score: int = DEFAULT_WINNING_SCORE
    hand_results: Tuple[HandResult, ...] = ()

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def scores(self) -> Tuple[int, int]:
        return (self.partnerships[0].score, self.partnerships[1].score)

    @property
    def current_trick_leader(self) -> int:
        """Seat that led the trick in progress (the turn advances one seat per card)."""
        return (self.current_player - len(self.current_trick)) % NUM_PLAYERS

    @property
    def last_hand(self) -> Optional[HandResult]:
        return self.hand_results[-1] if self.hand_results else None

    def player_index(self, player_id: str) -> Optional[int]:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return None

    def partnership_index(self, player_id: str) -> Optional[int]:
        for idx, partnership in enumerate(self.partnerships):
            if player_id in partnership.player_ids:
                return idx
        return None

    def partnership_of_seat(self, seat: int) -> Optional[int]:
        if not 0 <= seat < self.num_players:
            return None
        return self.partnership_index(self.players[seat].id)

    def partnership_players(self, index: int) -> List[Player]:
        wanted = self.partnerships[index].player_ids
        return [p for pid in wanted for p in self.players if p.id == pid]

    def partnership_name(self, index: int) -> str:
        team_name = self.partnerships[index].team_name
        if team_name:
            return team_name
        names = [p.name for p in self.partnership_players(index)]
        return " & ".join(names) if names else f"Partnership {index + 1}"

    def cards_in_play(self) -> List[Card]:
        """Every card dealt this hand: hands, the trick in progress and archived tricks."""
        cards: List[Card] = []
        for player in self.players:
            cards.extend(player.hand)
        cards.extend(self.current_trick)
        for trick in self.tricks:
            cards.extend(trick)
        return cards
