# setback/engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple, Union

from .cards import JOKER, Card, Rank, Suit, create_deck, shuffle_deck
from .rules import points_won_by_partnership, score_deltas, score_hand
from .state import (
    CARDS_PER_HAND,
    DEFAULT_WINNING_SCORE,
    NUM_PLAYERS,
    TRICKS_PER_HAND,
    Bid,
    GamePhase,
    GameState,
    HandResult,
    Partnership,
    Player,
    PointsAvailable,
)

logger = logging.getLogger(__name__)

MIN_BID = 2
MAX_BID = 6


# -------------------------------------------------------------------------
# Actions
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class InitializeGame:
    player_names: Tuple[str, ...]
    winning_score: int = DEFAULT_WINNING_SCORE

    def __post_init__(self) -> None:
        if len(self.player_names) != NUM_PLAYERS:
            raise ValueError("Setback is played by exactly 4 players")
        if self.winning_score <= 0:
            raise ValueError("winning_score must be positive")


@dataclass(frozen=True)
class DealCards:
    # Pre-shuffled deck to deal from; None shuffles a fresh one.
    deck: Optional[Tuple[Card, ...]] = None

    def __post_init__(self) -> None:
        if self.deck is not None and len(self.deck) < NUM_PLAYERS * CARDS_PER_HAND:
            raise ValueError("Not enough cards in deck to deal")


@dataclass(frozen=True)
class PlaceBid:
    player_id: str
    points: int
    is_pass: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.points <= MAX_BID:
            raise ValueError(f"Bid points must be between 0 and {MAX_BID}")


@dataclass(frozen=True)
class PlayCard:
    player_id: str
    card: Card


@dataclass(frozen=True)
class SetTrump:
    suit: Suit


@dataclass(frozen=True)
class CompleteTrick:
    pass


@dataclass(frozen=True)
class UpdatePlayerName:
    player_id: str
    new_name: str


@dataclass(frozen=True)
class UpdateTeamName:
    partnership_index: int
    team_name: Optional[str]


@dataclass(frozen=True)
class RestoreState:
    state: GameState


GameAction = Union[
    InitializeGame,
    DealCards,
    PlaceBid,
    PlayCard,
    SetTrump,
    CompleteTrick,
    UpdatePlayerName,
    UpdateTeamName,
    RestoreState,
]


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def minimum_bid(state: GameState) -> int:
    """Lowest non-pass bid the player to act may make."""
    if state.current_bid is None:
        return MIN_BID
    return state.current_bid.points + 1


def _current_round(bids: Tuple[Bid, ...]) -> Tuple[Bid, ...]:
    """Bids of the open block of four (a full block when len is a multiple of 4)."""
    size = len(bids) % NUM_PLAYERS or NUM_PLAYERS
    return bids[-size:]


def _with_dealer_flags(players: Tuple[Player, ...], dealer: int) -> Tuple[Player, ...]:
    return tuple(
        p if p.is_dealer == (p.position == dealer) else replace(p, is_dealer=p.position == dealer)
        for p in players
    )


def _jack_dealt(cards: List[Card], suit: Suit) -> bool:
    return Card(Rank.JACK, suit) in cards


def _resolve_bidding(state: GameState, bids: Tuple[Bid, ...], winner: Bid) -> GameState:
    seat = state.player_index(winner.player_id)
    logger.info(
        "Bidding won by %s with %d",
        state.players[seat].name,
        winner.points,
    )
    return replace(
        state,
        bids=bids,
        current_bid=winner,
        current_player=seat,
        phase=GamePhase.PLAYING,
    )


# -------------------------------------------------------------------------
# Transitions
# -------------------------------------------------------------------------


def _initialize_game(state: GameState, action: InitializeGame) -> GameState:
    players = tuple(
        Player(
            id=f"player-{idx}",
            name=name,
            position=idx,
            is_dealer=idx == 0,
        )
        for idx, name in enumerate(action.player_names)
    )
    partnerships = (
        Partnership(player_ids=(players[0].id, players[2].id)),
        Partnership(player_ids=(players[1].id, players[3].id)),
    )
    logger.info("New game: %s", ", ".join(action.player_names))
    return GameState(
        players=players,
        partnerships=partnerships,
        winning_score=action.winning_score,
    )


def _deal_cards(state: GameState, action: DealCards) -> GameState:
    if state.phase is not GamePhase.DEALING or state.num_players != NUM_PLAYERS:
        return state

    deck = list(action.deck) if action.deck is not None else shuffle_deck(create_deck())
    dealer = state.current_dealer

    hands: List[List[Card]] = [[] for _ in range(NUM_PLAYERS)]
    idx = 0
    for _ in range(CARDS_PER_HAND):
        for offset in range(1, NUM_PLAYERS + 1):
            hands[(dealer + offset) % NUM_PLAYERS].append(deck[idx])
            idx += 1

    players = tuple(
        replace(p, hand=tuple(hands[p.position]), is_dealer=p.position == dealer)
        for p in state.players
    )
    dealt = [c for hand in hands for c in hand]
    logger.info("Dealt hand with %s dealing", state.players[dealer].name)

    return replace(
        state,
        deck=tuple(deck[idx:]),
        players=players,
        phase=GamePhase.BIDDING,
        current_player=(dealer + 1) % NUM_PLAYERS,
        bids=(),
        current_bid=None,
        current_trick=(),
        trump_suit=None,
        tricks=(),
        trick_leaders=(),
        points_available=PointsAvailable(joker=JOKER in dealt),
    )


def _place_bid(state: GameState, action: PlaceBid) -> GameState:
    if state.phase is not GamePhase.BIDDING:
        return state
    seat = state.player_index(action.player_id)
    if seat is None or seat != state.current_player:
        logger.debug("Ignoring bid from %s out of turn", action.player_id)
        return state

    is_pass = action.is_pass or not (
        minimum_bid(state) <= action.points <= MAX_BID
    )
    bid = Bid(action.player_id, 0 if is_pass else action.points, is_pass)
    bids = state.bids + (bid,)
    round_bids = _current_round(bids)

    if len(round_bids) == NUM_PLAYERS and all(b.is_pass for b in round_bids[:-1]):
        # Everyone before the dealer passed: the dealer is stuck at 2.
        dealer_bid = Bid(state.players[state.current_dealer].id, MIN_BID, False)
        if bid.is_pass and bid.player_id != dealer_bid.player_id:
            bids = bids + (dealer_bid,)
        else:
            bids = bids[:-1] + (dealer_bid,)
        return _resolve_bidding(state, bids, dealer_bid)

    if not bid.is_pass and bid.points == MAX_BID:
        return _resolve_bidding(state, bids, bid)

    if len(round_bids) == NUM_PLAYERS:
        highest: Optional[Bid] = None
        for b in round_bids:
            if not b.is_pass and (highest is None or b.points > highest.points):
                highest = b
        if highest is not None:
            return _resolve_bidding(state, bids, highest)

    return replace(
        state,
        bids=bids,
        current_bid=state.current_bid if bid.is_pass else bid,
        current_player=(state.current_player + 1) % NUM_PLAYERS,
    )


def _play_card(state: GameState, action: PlayCard) -> GameState:
    if state.phase is not GamePhase.PLAYING:
        return state
    seat = state.player_index(action.player_id)
    if seat is None or seat != state.current_player:
        logger.debug("Ignoring card from %s out of turn", action.player_id)
        return state

    player = state.players[seat]
    if action.card not in player.hand:
        logger.debug("%s does not hold %s", player.name, action.card)
        return state

    hand = list(player.hand)
    hand.remove(action.card)
    players = list(state.players)
    players[seat] = replace(player, hand=tuple(hand))

    trick = state.current_trick + (action.card,)
    return replace(
        state,
        players=tuple(players),
        current_trick=trick,
        current_player=(state.current_player + 1) % NUM_PLAYERS,
        phase=GamePhase.SCORING if len(trick) == NUM_PLAYERS else GamePhase.PLAYING,
    )


def _set_trump(state: GameState, action: SetTrump) -> GameState:
    if state.phase not in (GamePhase.PLAYING, GamePhase.SCORING):
        return state
    if state.trump_suit == action.suit:
        return state

    dealt = state.cards_in_play()
    available = replace(
        state.points_available,
        jack_of_trump=_jack_dealt(dealt, action.suit),
        off_jack=_jack_dealt(dealt, action.suit.same_color),
    )
    logger.info("Trump is %s", action.suit.value)
    return replace(state, trump_suit=action.suit, points_available=available)


def _complete_trick(state: GameState, action: CompleteTrick) -> GameState:
    if state.phase is not GamePhase.SCORING or len(state.current_trick) != NUM_PLAYERS:
        return state

    tricks = state.tricks + (state.current_trick,)
    leaders = state.trick_leaders + (state.current_trick_leader,)

    if len(tricks) < TRICKS_PER_HAND:
        return replace(
            state,
            tricks=tricks,
            trick_leaders=leaders,
            current_trick=(),
            phase=GamePhase.PLAYING,
        )

    if state.trump_suit is None or state.current_bid is None:
        return state
    declarer = state.partnership_index(state.current_bid.player_id)
    seat_partnership = {
        seat: state.partnership_of_seat(seat) for seat in range(state.num_players)
    }
    if declarer is None or None in seat_partnership.values():
        return state

    points = score_hand(tricks, state.trump_suit, leaders)
    won = points_won_by_partnership(points, seat_partnership)
    deltas = score_deltas(won, declarer, state.current_bid.points)
    partnerships = (
        replace(state.partnerships[0], score=state.partnerships[0].score + deltas[0]),
        replace(state.partnerships[1], score=state.partnerships[1].score + deltas[1]),
    )
    result = HandResult(
        points=points,
        trump_suit=state.trump_suit,
        dealer=state.current_dealer,
        declarer=declarer,
        bid=state.current_bid.points,
        points_won=won,
        score_deltas=deltas,
    )

    game_over = any(p.score >= state.winning_score for p in partnerships)
    dealer = (state.current_dealer + 1) % NUM_PLAYERS
    logger.info(
        "Hand complete: won %s, deltas %s, scores %d-%d%s",
        won,
        deltas,
        partnerships[0].score,
        partnerships[1].score,
        " (game over)" if game_over else "",
    )

    return replace(
        state,
        tricks=tricks,
        trick_leaders=leaders,
        current_trick=(),
        partnerships=partnerships,
        hand_results=state.hand_results + (result,),
        players=_with_dealer_flags(state.players, dealer),
        current_dealer=dealer,
        phase=GamePhase.GAME_OVER if game_over else GamePhase.DEALING,
    )


def _update_player_name(state: GameState, action: UpdatePlayerName) -> GameState:
    seat = state.player_index(action.player_id)
    name = action.new_name.strip()
    if seat is None or not name or state.players[seat].name == name:
        return state
    players = list(state.players)
    players[seat] = replace(players[seat], name=name)
    return replace(state, players=tuple(players))


def _update_team_name(state: GameState, action: UpdateTeamName) -> GameState:
    if action.partnership_index not in (0, 1):
        return state
    name = (action.team_name or "").strip() or None
    current = state.partnerships[action.partnership_index]
    if current.team_name == name:
        return state
    partnerships = list(state.partnerships)
    partnerships[action.partnership_index] = replace(current, team_name=name)
    return replace(state, partnerships=(partnerships[0], partnerships[1]))


def _restore_state(state: GameState, action: RestoreState) -> GameState:
    return action.state


_HANDLERS: Dict[type, Callable[[GameState, GameAction], GameState]] = {
    InitializeGame: _initialize_game,
    DealCards: _deal_cards,
    PlaceBid: _place_bid,
    PlayCard: _play_card,
    SetTrump: _set_trump,
    CompleteTrick: _complete_trick,
    UpdatePlayerName: _update_player_name,
    UpdateTeamName: _update_team_name,
    RestoreState: _restore_state,
}


def game_reducer(state: GameState, action: GameAction) -> GameState:
    """
    Pure transition function: return the state after `action`.

    Actions that do not apply (wrong phase, unknown player, out of turn, card
    not held) return `state` itself, unchanged.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {action!r}")
    return handler(state, action)
