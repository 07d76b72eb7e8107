# setback/persistence.py
"""
Game state documents for session resume and file export/import.

A document is a JSON-compatible dict mirroring GameState field by field
(camelCase keys). Partnerships embed copies of their players for readers,
but only the ids are trusted on the way back in. Decoding is all-or-nothing:
anything malformed raises GameImportError and no state is produced.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .cards import DECK_SIZE, Card, Suit, card_to_dict, dict_to_card
from .state import (
    NUM_PLAYERS,
    TRICKS_PER_HAND,
    Bid,
    GamePhase,
    GameState,
    HandPoints,
    HandResult,
    Partnership,
    Player,
    PointsAvailable,
)

SCHEMA_VERSION = 1
EXPORT_PREFIX = "setback-game"

_POINTS_AVAILABLE_KEYS = (
    ("highTrump", "high_trump"),
    ("lowTrump", "low_trump"),
    ("jackOfTrump", "jack_of_trump"),
    ("offJack", "off_jack"),
    ("joker", "joker"),
    ("gamePoints", "game_points"),
)

_HAND_POINTS_KEYS = (
    ("highTrumpWinner", "high_trump_winner"),
    ("lowTrumpWinner", "low_trump_winner"),
    ("jackTrumpWinner", "jack_trump_winner"),
    ("offJackWinner", "off_jack_winner"),
    ("jokerWinner", "joker_winner"),
    ("gamePointsWinner", "game_points_winner"),
)


class GameImportError(ValueError):
    """A saved or imported game document could not be turned into a GameState."""


# -------------------------------------------------------------------------
# Encoding
# -------------------------------------------------------------------------


def _cards(cards: Sequence[Card]) -> List[Dict[str, Any]]:
    return [card_to_dict(c) for c in cards]


def _player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "hand": _cards(player.hand),
        "isDealer": player.is_dealer,
        "position": player.position,
    }


def _bid_to_dict(bid: Bid) -> Dict[str, Any]:
    return {"playerId": bid.player_id, "points": bid.points, "pass": bid.is_pass}


def _hand_result_to_dict(result: HandResult) -> Dict[str, Any]:
    return {
        "points": {key: getattr(result.points, attr) for key, attr in _HAND_POINTS_KEYS},
        "trumpSuit": result.trump_suit.value,
        "dealer": result.dealer,
        "declarer": result.declarer,
        "bid": result.bid,
        "pointsWon": list(result.points_won),
        "scoreDeltas": list(result.score_deltas),
    }


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Serialize a GameState to a JSON-compatible dict."""
    by_id = {p.id: p for p in state.players}
    doc: Dict[str, Any] = {
        "schemaVersion": SCHEMA_VERSION,
        "deck": _cards(state.deck),
        "players": [_player_to_dict(p) for p in state.players],
        "partnerships": [
            {
                "players": [_player_to_dict(by_id[pid]) for pid in p.player_ids if pid in by_id],
                "score": p.score,
                "teamName": p.team_name,
            }
            for p in state.partnerships
        ],
        "currentTrick": _cards(state.current_trick),
        "bids": [_bid_to_dict(b) for b in state.bids],
        "currentPlayer": state.current_player,
        "phase": state.phase.value,
        "pointsAvailable": {
            key: getattr(state.points_available, attr) for key, attr in _POINTS_AVAILABLE_KEYS
        },
        "tricks": [_cards(t) for t in state.tricks],
        "trickLeaders": list(state.trick_leaders),
        "currentDealer": state.current_dealer,
        "winningScore": state.winning_score,
        "handResults": [_hand_result_to_dict(r) for r in state.hand_results],
    }
    if state.trump_suit is not None:
        doc["trumpSuit"] = state.trump_suit.value
    if state.current_bid is not None:
        doc["currentBid"] = _bid_to_dict(state.current_bid)
    return doc


def dumps(state: GameState, indent: Optional[int] = None) -> str:
    return json.dumps(state_to_dict(state), indent=indent, ensure_ascii=False)


def export_filename(day: Optional[date] = None) -> str:
    """File name for an exported game, stamped with the given (or today's) date."""
    day = day or date.today()
    return f"{EXPORT_PREFIX}-{day.isoformat()}.json"


# -------------------------------------------------------------------------
# Decoding
# -------------------------------------------------------------------------


def _int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise GameImportError(f"{what} must be an integer")
    return value


def _list(value: Any, what: str) -> List[Any]:
    if not isinstance(value, list):
        raise GameImportError(f"{what} must be a list")
    return value


def _card_list(value: Any, what: str) -> Tuple[Card, ...]:
    return tuple(dict_to_card(c) for c in _list(value, what))


def _optional_seat(value: Any, what: str) -> Optional[int]:
    return None if value is None else _int(value, what)


def _str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise GameImportError(f"{what} must be a string")
    return value


def _player_from_dict(data: Dict[str, Any]) -> Player:
    return Player(
        id=str(data["id"]),
        name=_str(data["name"], "player name"),
        position=_int(data["position"], "player position"),
        hand=_card_list(data.get("hand", []), "player hand"),
        is_dealer=bool(data.get("isDealer", False)),
    )


def _bid_from_dict(data: Dict[str, Any]) -> Bid:
    return Bid(
        player_id=str(data["playerId"]),
        points=_int(data["points"], "bid points"),
        is_pass=bool(data["pass"]),
    )


def _partnership_from_dict(data: Dict[str, Any]) -> Partnership:
    members = _list(data["players"], "partnership players")
    team_name = data.get("teamName")
    return Partnership(
        player_ids=tuple(str(m["id"]) for m in members),
        score=_int(data["score"], "partnership score"),
        team_name=None if team_name is None else _str(team_name, "teamName") or None,
    )


def _hand_result_from_dict(data: Dict[str, Any]) -> HandResult:
    raw_points = data["points"]
    points = HandPoints(
        **{attr: _optional_seat(raw_points.get(key), key) for key, attr in _HAND_POINTS_KEYS}
    )
    won = _list(data["pointsWon"], "pointsWon")
    deltas = _list(data["scoreDeltas"], "scoreDeltas")
    return HandResult(
        points=points,
        trump_suit=Suit(data["trumpSuit"]),
        dealer=_int(data["dealer"], "dealer"),
        declarer=_int(data["declarer"], "declarer"),
        bid=_int(data["bid"], "bid"),
        points_won=(_int(won[0], "pointsWon"), _int(won[1], "pointsWon")),
        score_deltas=(_int(deltas[0], "scoreDeltas"), _int(deltas[1], "scoreDeltas")),
    )


def _build_state(doc: Dict[str, Any]) -> GameState:
    players = tuple(_player_from_dict(p) for p in _list(doc["players"], "players"))
    partnerships = tuple(
        _partnership_from_dict(p) for p in _list(doc["partnerships"], "partnerships")
    )
    if len(partnerships) != 2:
        raise GameImportError("A game has exactly two partnerships")

    current_trick = _card_list(doc.get("currentTrick", []), "currentTrick")
    tricks = tuple(_card_list(t, "trick") for t in _list(doc.get("tricks", []), "tricks"))
    current_player = _int(doc["currentPlayer"], "currentPlayer")

    if "trickLeaders" in doc:
        leaders = tuple(_int(s, "trick leader") for s in _list(doc["trickLeaders"], "trickLeaders"))
    else:
        # Older saves: the turn never jumps, so every trick was led by the
        # seat that led the trick in progress.
        leader = (current_player - len(current_trick)) % NUM_PLAYERS
        leaders = tuple(leader for _ in tricks)

    raw_available = doc.get("pointsAvailable") or {}
    available = PointsAvailable(
        **{
            attr: bool(raw_available.get(key, getattr(PointsAvailable(), attr)))
            for key, attr in _POINTS_AVAILABLE_KEYS
        }
    )

    trump = doc.get("trumpSuit")
    current_bid = doc.get("currentBid")
    return GameState(
        players=players,
        partnerships=(partnerships[0], partnerships[1]),
        deck=_card_list(doc.get("deck", []), "deck"),
        current_trick=current_trick,
        trump_suit=Suit(trump) if trump else None,
        bids=tuple(_bid_from_dict(b) for b in _list(doc.get("bids", []), "bids")),
        current_bid=_bid_from_dict(current_bid) if current_bid else None,
        current_player=current_player,
        phase=GamePhase(doc["phase"]),
        points_available=available,
        tricks=tricks,
        trick_leaders=leaders,
        current_dealer=_int(doc["currentDealer"], "currentDealer"),
        winning_score=_int(doc.get("winningScore", 21), "winningScore"),
        hand_results=tuple(
            _hand_result_from_dict(r) for r in _list(doc.get("handResults", []), "handResults")
        ),
    )


def _validate_phase(state: GameState) -> None:
    """The trick in progress, the tricks taken and the bid must fit the phase."""
    phase = state.phase
    trick_size = len(state.current_trick)
    if phase is GamePhase.SCORING:
        if trick_size != NUM_PLAYERS:
            raise GameImportError("A trick waiting to be collected holds exactly 4 cards")
    elif phase is GamePhase.PLAYING:
        if trick_size >= NUM_PLAYERS:
            raise GameImportError("A trick in play holds fewer than 4 cards")
    elif trick_size:
        raise GameImportError(f"No trick can be in progress while {phase.value}")

    if phase in (GamePhase.PLAYING, GamePhase.SCORING):
        if state.current_bid is None:
            raise GameImportError(f"A hand cannot be {phase.value} without a winning bid")
        if len(state.tricks) >= TRICKS_PER_HAND:
            raise GameImportError("All six tricks are taken but the hand is not scored")


def validate_state(state: GameState) -> None:
    """Raise GameImportError if `state` breaks a structural invariant."""
    if state.num_players != NUM_PLAYERS:
        raise GameImportError("A game needs exactly 4 players")
    ids = [p.id for p in state.players]
    if len(set(ids)) != NUM_PLAYERS:
        raise GameImportError("Player ids must be unique")
    for idx, player in enumerate(state.players):
        if player.position != idx:
            raise GameImportError(f"Player {player.id} is not seated at position {idx}")

    seats_seen = set()
    for partnership in state.partnerships:
        if len(partnership.player_ids) != 2:
            raise GameImportError("Each partnership has exactly two players")
        seats = [state.player_index(pid) for pid in partnership.player_ids]
        if None in seats:
            raise GameImportError("Partnership refers to an unknown player")
        if (seats[0] - seats[1]) % NUM_PLAYERS != 2:
            raise GameImportError("Partners must sit opposite each other")
        seats_seen.update(seats)
    if len(seats_seen) != NUM_PLAYERS:
        raise GameImportError("Partnerships must cover all four players")

    for what, seat in (("currentPlayer", state.current_player), ("currentDealer", state.current_dealer)):
        if not 0 <= seat < NUM_PLAYERS:
            raise GameImportError(f"{what} out of range")
    if len(state.current_trick) > NUM_PLAYERS:
        raise GameImportError("The current trick holds at most 4 cards")
    if len(state.tricks) > TRICKS_PER_HAND:
        raise GameImportError("A hand has at most 6 tricks")
    if any(len(t) != NUM_PLAYERS for t in state.tricks):
        raise GameImportError("Completed tricks hold exactly 4 cards")
    if len(state.trick_leaders) != len(state.tricks):
        raise GameImportError("trickLeaders must have one entry per trick")
    if any(not 0 <= s < NUM_PLAYERS for s in state.trick_leaders):
        raise GameImportError("trick leader out of range")
    if state.winning_score <= 0:
        raise GameImportError("winningScore must be positive")
    _validate_phase(state)

    all_cards = state.cards_in_play() + list(state.deck)
    if len(all_cards) > DECK_SIZE or len(set(all_cards)) != len(all_cards):
        raise GameImportError("Cards are duplicated across hands, tricks and deck")

    for bid in state.bids + ((state.current_bid,) if state.current_bid else ()):
        if state.player_index(bid.player_id) is None:
            raise GameImportError("Bid from an unknown player")
        if not 0 <= bid.points <= 6:
            raise GameImportError("Bid points out of range")


def state_from_dict(doc: Any) -> GameState:
    """
    Rebuild a GameState from a document produced by `state_to_dict`.

    Also accepts documents written before `trickLeaders`, `handResults` and
    `schemaVersion` existed. Raises GameImportError on any defect.
    """
    if not isinstance(doc, dict):
        raise GameImportError("Game document must be a JSON object")
    version = doc.get("schemaVersion", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise GameImportError(f"Unsupported schema version: {version}")
    try:
        state = _build_state(doc)
    except GameImportError:
        raise
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        raise GameImportError(f"Invalid game document: {exc!r}") from exc
    validate_state(state)
    return state


def loads(text: str) -> GameState:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GameImportError(f"Not a JSON document: {exc.msg}") from exc
    return state_from_dict(doc)
