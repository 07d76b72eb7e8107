# setback/cli.py
from __future__ import annotations

import argparse
import logging
import random
import shlex
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from .cards import Suit, format_cards, parse_card
from .config import Settings, load_settings
from .engine import minimum_bid
from .game_log import build_trick_history_rows, hand_summary_lines, write_hand_scores_csv
from .paths import ensure_dir, resolve_in
from .persistence import GameImportError, loads
from .session import GameSession
from .state import GamePhase, GameState
from .storage import FileSessionStore

DEFAULT_NAMES = ["North", "East", "South", "West"]

HELP_TEXT = """\
Commands:
  new [N1 N2 N3 N4]   start a new game (default North East South West)
  deal                deal the next hand
  bid POINTS | pass   bid for the player to act
  play CARD           play a card for the player to act (e.g. 10H, QS, JOKER)
  trump SUIT          declare trump explicitly
  complete            collect the finished trick
  rename SEAT NAME    rename the player in seat 0-3
  team 1|2 [NAME]     name a partnership (no name resets it)
  undo / redo         step through history
  show                show the table
  tricks              list the tricks of this hand
  scores [FILE]       write per-hand scores as CSV
  export [DIR]        save the game as a dated JSON file
  import FILE         load a saved game
  quit                leave"""


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Setback (Pitch) for four players in two partnerships."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: SETBACK_LOG_LEVEL or INFO.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play at an interactive table.")
    play.add_argument(
        "--fresh",
        action="store_true",
        help="Ignore the saved session instead of resuming it.",
    )
    play.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for shuffling (default: SETBACK_SEED or random).",
    )

    relay = sub.add_parser("relay", help="Run the multiplayer relay server.")
    relay.add_argument("--host", type=str, default=None)
    relay.add_argument("--port", type=int, default=None)

    chart = sub.add_parser("chart", help="Plot partnership scores from a saved game.")
    chart.add_argument("game", type=str, help="Exported game JSON file.")
    chart.add_argument(
        "--out",
        type=str,
        default="score_progression.png",
        help="Output image, relative paths land in the saves directory.",
    )

    return parser.parse_args(argv)


# --------------------------------------------------------------------------- #
# Table rendering                                                              #
# --------------------------------------------------------------------------- #


def render_state(state: GameState) -> str:
    if not state.players:
        return "No game yet. Type 'new' to start."

    lines = [
        f"Phase: {state.phase.value}",
        f"Dealer: {state.players[state.current_dealer].name}",
    ]
    for idx in (0, 1):
        lines.append(f"  {state.partnership_name(idx)}: {state.partnerships[idx].score}")
    if state.trump_suit is not None:
        lines.append(f"Trump: {state.trump_suit.value} {state.trump_suit.symbol}")
    if state.current_bid is not None:
        bidder = state.players[state.player_index(state.current_bid.player_id)].name
        lines.append(f"Bid: {state.current_bid.points} by {bidder}")

    if state.current_trick:
        leader = state.current_trick_leader
        plays = [
            f"{state.players[(leader + i) % state.num_players].name}: {card}"
            for i, card in enumerate(state.current_trick)
        ]
        lines.append("Trick: " + ", ".join(plays))

    if state.phase in (GamePhase.BIDDING, GamePhase.PLAYING):
        player = state.players[state.current_player]
        lines.append(f"To act: {player.name} (seat {player.position})")
        lines.append(f"Hand: {format_cards(player.hand)}")
        if state.phase is GamePhase.BIDDING:
            low = minimum_bid(state)
            lines.append(f"Bid {low}-6 or pass" if low <= 6 else "Pass")
    elif state.phase is GamePhase.SCORING:
        lines.append("Trick complete: type 'complete'.")
    elif state.last_hand is not None:
        lines.append("Last hand:")
        lines.extend(f"  {line}" for line in hand_summary_lines(state, state.last_hand))
        if state.phase is GamePhase.GAME_OVER:
            first, second = state.scores
            if first == second:
                lines.append(f"Game over: tied at {first}.")
            else:
                winner = 0 if first > second else 1
                lines.append(f"Game over: {state.partnership_name(winner)} win.")
    return "\n".join(lines)


def _seat_player_id(state: GameState, raw: str) -> Optional[str]:
    if raw.isdigit() and int(raw) < state.num_players:
        return state.players[int(raw)].id
    return raw if state.player_index(raw) is not None else None


# --------------------------------------------------------------------------- #
# Interactive table                                                            #
# --------------------------------------------------------------------------- #


def run_table(
    session: GameSession,
    lines: Iterable[str],
    out: TextIO,
    saves_dir: Path,
) -> None:
    """Read commands from `lines` and drive `session`, writing to `out`."""

    def say(text: str) -> None:
        out.write(text + "\n")

    def acting_id() -> Optional[str]:
        state = session.state
        if not state.players:
            return None
        return state.players[state.current_player].id

    def cmd_new(args: List[str]) -> None:
        names = args or DEFAULT_NAMES
        if len(names) != 4:
            say("Give exactly four names.")
            return
        session.initialize_game(names)

    def cmd_bid(args: List[str]) -> None:
        if not args or not args[0].isdigit():
            say("Usage: bid POINTS")
            return
        try:
            session.place_bid(acting_id() or "", int(args[0]))
        except ValueError as exc:
            say(f"{exc}. Usage: bid POINTS")

    def cmd_play(args: List[str]) -> None:
        if not args:
            say("Usage: play CARD")
            return
        try:
            card = parse_card(args[0])
        except ValueError as exc:
            say(str(exc))
            return
        before = session.state
        if session.play_card(acting_id() or "", card) is before:
            say(f"Cannot play {card} now.")

    def cmd_trump(args: List[str]) -> None:
        try:
            session.set_trump(Suit(args[0].lower()))
        except (IndexError, ValueError):
            say("Usage: trump hearts|diamonds|clubs|spades")

    def cmd_rename(args: List[str]) -> None:
        player_id = _seat_player_id(session.state, args[0]) if args else None
        if player_id is None or len(args) < 2:
            say("Usage: rename SEAT NAME")
            return
        session.update_player_name(player_id, " ".join(args[1:]))

    def cmd_team(args: List[str]) -> None:
        if not args or args[0] not in ("1", "2"):
            say("Usage: team 1|2 [NAME]")
            return
        session.update_team_name(int(args[0]) - 1, " ".join(args[1:]) or None)

    def cmd_tricks(args: List[str]) -> None:
        rows = build_trick_history_rows(session.state)
        if not rows:
            say("No tricks yet.")
        for row in rows:
            say(f"{row['trick_number']}. {row['cards']}  led by {row['leader']}, won by {row['winner']}")

    def cmd_scores(args: List[str]) -> None:
        path = resolve_in(saves_dir, args[0] if args else "hand_scores.csv")
        write_hand_scores_csv(session.state, path)
        say(f"Wrote {path}")

    def cmd_export(args: List[str]) -> None:
        directory = Path(args[0]) if args else ensure_dir(saves_dir)
        say(f"Saved {session.export_game_state(directory)}")

    def cmd_import(args: List[str]) -> None:
        if not args:
            say("Usage: import FILE")
            return
        try:
            session.import_game_state(Path(args[0]))
        except GameImportError as exc:
            say(f"Error importing game state: {exc}")

    commands: Dict[str, Callable[[List[str]], None]] = {
        "new": cmd_new,
        "deal": lambda args: session.deal_cards(),
        "bid": cmd_bid,
        "pass": lambda args: session.place_bid(acting_id() or "", 0, True),
        "play": cmd_play,
        "trump": cmd_trump,
        "complete": lambda args: session.complete_trick(),
        "rename": cmd_rename,
        "team": cmd_team,
        "undo": lambda args: session.undo(),
        "redo": lambda args: session.redo(),
        "show": lambda args: None,
        "tricks": cmd_tricks,
        "scores": cmd_scores,
        "export": cmd_export,
        "import": cmd_import,
        "help": lambda args: say(HELP_TEXT),
    }
    quiet = {"help", "tricks", "scores", "export"}

    for raw in lines:
        try:
            words = shlex.split(raw)
        except ValueError:
            say("Could not parse that line.")
            continue
        if not words:
            continue
        name, args = words[0].lower(), words[1:]
        if name in ("quit", "exit"):
            break
        handler = commands.get(name)
        if handler is None:
            say(f"Unknown command {name!r}. Type 'help'.")
            continue
        handler(args)
        if name not in quiet:
            say(render_state(session.state))


# --------------------------------------------------------------------------- #
# Entry points                                                                 #
# --------------------------------------------------------------------------- #


def _play(args: argparse.Namespace, settings: Settings) -> None:
    seed = args.seed if args.seed is not None else settings.seed
    session = GameSession(
        FileSessionStore(settings.saves_dir),
        rng=random.Random(seed),
        winning_score=settings.winning_score,
        resume=not args.fresh,
    )
    print(HELP_TEXT)
    print(render_state(session.state))

    def prompt_lines() -> Iterable[str]:
        while True:
            try:
                yield input("setback> ")
            except EOFError:
                return

    run_table(session, prompt_lines(), sys.stdout, settings.saves_dir)


def _chart(args: argparse.Namespace, settings: Settings) -> None:
    from .results.score_progression import plot_score_progression

    try:
        state = loads(Path(args.game).read_text(encoding="utf-8"))
    except (OSError, GameImportError) as exc:
        raise SystemExit(f"Cannot read {args.game}: {exc}")

    out = resolve_in(settings.saves_dir, args.out)
    csv_path = out.with_suffix(".csv")
    write_hand_scores_csv(state, csv_path)
    plot_score_progression(
        csv_path,
        out,
        team_names=(state.partnership_name(0), state.partnership_name(1)),
        winning_score=state.winning_score,
    )
    logging.info("Wrote %s and %s", csv_path, out)


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    settings = load_settings()

    level = args.log_level or settings.log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "play":
        _play(args, settings)
    elif args.command == "relay":
        from .relay import run_relay

        run_relay(args.host or settings.relay_host, args.port or settings.relay_port)
    elif args.command == "chart":
        _chart(args, settings)


if __name__ == "__main__":
    main()
