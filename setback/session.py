# setback/session.py
from __future__ import annotations

import logging
import random
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from .cards import Card, Suit, create_deck, shuffle_deck
from .engine import (
    CompleteTrick,
    DealCards,
    GameAction,
    InitializeGame,
    PlaceBid,
    PlayCard,
    RestoreState,
    SetTrump,
    UpdatePlayerName,
    UpdateTeamName,
    game_reducer,
)
from .history import History
from .persistence import GameImportError, dumps, export_filename, loads
from .state import DEFAULT_WINNING_SCORE, GameState
from .storage import SESSION_KEY, SessionStore

logger = logging.getLogger(__name__)


class GameSession:
    """
    The single entry point for driving a game.

    Every intent goes through one History, so each change is an undo
    checkpoint. After every change the present state is written to the
    session store (if one was given), and a new session resumes from it.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        *,
        rng: Optional[random.Random] = None,
        winning_score: int = DEFAULT_WINNING_SCORE,
        resume: bool = True,
    ) -> None:
        self.store = store
        self.rng = rng if rng is not None else random.Random()
        self.winning_score = winning_score
        self.history: History[GameState, GameAction] = History(game_reducer, GameState())
        if resume and store is not None:
            self._resume()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self.history.present

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    def initialize_game(self, player_names: Sequence[str]) -> GameState:
        if self.store is not None:
            self.store.remove_item(SESSION_KEY)
        return self._dispatch(
            InitializeGame(tuple(player_names), winning_score=self.winning_score)
        )

    def deal_cards(self, deck: Optional[Sequence[Card]] = None) -> GameState:
        """Deal a hand, from `deck` as given (a stacked deck) or freshly shuffled."""
        if deck is None:
            deck = shuffle_deck(create_deck(), self.rng)
        return self._dispatch(DealCards(tuple(deck)))

    def place_bid(self, player_id: str, points: int, is_pass: bool = False) -> GameState:
        return self._dispatch(PlaceBid(player_id, points, is_pass))

    def play_card(self, player_id: str, card: Card, *, auto_trump: bool = True) -> GameState:
        """
        Play a card. With `auto_trump`, the first non-joker card of the hand
        also declares trump (as a separate checkpoint).
        """
        before = self.state
        after = self._dispatch(PlayCard(player_id, card))
        if auto_trump and after is not before and after.trump_suit is None and not card.is_joker:
            after = self.set_trump(card.suit)
        return after

    def set_trump(self, suit: Suit) -> GameState:
        return self._dispatch(SetTrump(suit))

    def complete_trick(self) -> GameState:
        return self._dispatch(CompleteTrick())

    def update_player_name(self, player_id: str, new_name: str) -> GameState:
        return self._dispatch(UpdatePlayerName(player_id, new_name))

    def update_team_name(self, partnership_index: int, team_name: Optional[str]) -> GameState:
        return self._dispatch(UpdateTeamName(partnership_index, team_name))

    def undo(self) -> GameState:
        if not self.history.can_undo:
            return self.state
        self.history.undo()
        self._autosave()
        return self.state

    def redo(self) -> GameState:
        if not self.history.can_redo:
            return self.state
        self.history.redo()
        self._autosave()
        return self.state

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_game_state(self, directory: Path, day: Optional[date] = None) -> Path:
        """Write the present state as pretty-printed JSON named after the date."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / export_filename(day)
        path.write_text(dumps(self.state, indent=2), encoding="utf-8")
        logger.info("Exported game to %s", path)
        return path

    def import_game_state(self, path: Path) -> GameState:
        """
        Replace the present state with the one saved at `path`.

        The file is read and decoded in full before anything changes; on any
        failure GameImportError is raised and the current game is untouched.
        The import itself is one undoable step.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise GameImportError(f"Could not read {path}: {exc}") from exc
        restored = loads(text)
        logger.info("Imported game from %s", path)
        return self._dispatch(RestoreState(restored))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _dispatch(self, action: GameAction) -> GameState:
        before = self.history.present
        after = self.history.dispatch(action)
        if after is not before:
            self._autosave()
        return after

    def _autosave(self) -> None:
        if self.store is None or not self.state.players:
            return
        try:
            self.store.set_item(SESSION_KEY, dumps(self.state))
        except OSError as exc:
            logger.error("Could not save session: %s", exc)

    def _resume(self) -> None:
        text = self.store.get_item(SESSION_KEY)
        if not text:
            return
        try:
            restored = loads(text)
        except GameImportError as exc:
            logger.warning("Ignoring unreadable saved session: %s", exc)
            return
        self.history.reset(restored)
        logger.info("Resumed saved session (%s)", restored.phase.value)
