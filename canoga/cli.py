"""
Canoga CLI - Command-line interface for the engine.

Usage:
    canoga simulate [--rounds N] [--board-size 9] [--seed S]   Computer vs computer match
    canoga inspect <save_file>                                 Show a saved game
    canoga serve [--host H] [--port P]                         Run the REST API
"""

import argparse
import logging
import sys

from .config import Settings, configure_logging
from .engine_core.errors import CanogaError

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Canoga - Shut the Box rule engine",
        prog="canoga",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a computer vs computer match")
    simulate_parser.add_argument("--rounds", type=int, default=1, help="Number of rounds")
    simulate_parser.add_argument("--board-size", type=int, default=None, help="Board size (9-11)")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Dice seed")
    simulate_parser.add_argument("--quiet", "-q", action="store_true", help="Only print results")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show a saved game")
    inspect_parser.add_argument("save_file", help="Path to save text file")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except CanogaError as e:
        print(f"Error: {e.message}")
        sys.exit(2)
    configure_logging(settings)

    try:
        if args.command == "simulate":
            cmd_simulate(args, settings)
        elif args.command == "inspect":
            cmd_inspect(args)
        elif args.command == "serve":
            cmd_serve(args, settings)
        else:
            parser.print_help()
            sys.exit(1)
    except CanogaError as e:
        print(f"Error [{e.error_code}]: {e.message}")
        sys.exit(1)


def cmd_simulate(args, settings: Settings):
    """Computer vs computer match."""
    from .session import GameLoop, GameMode, SessionManager

    if args.rounds < 1:
        print("Error: --rounds must be at least 1")
        sys.exit(1)

    manager = SessionManager()
    session = manager.create_session(GameMode.COMPUTER_VS_COMPUTER, seed=args.seed)
    loop = GameLoop(session, max_steps=settings.autoplay_max_steps)
    size = args.board_size or settings.default_board_size

    for _ in range(args.rounds):
        loop.start_round(size)
        round_ = loop.round
        print(f"Round {loop.tournament.round_number}: "
              f"{session.player_name(round_.first_player)} moves first")
        lock = round_.advantage_lock
        if lock:
            print(f"  Advantage: square {lock.square} pre-covered for {session.player_name(lock.holder)}")

        result = loop.run_automa()
        if not args.quiet:
            for line in result.automa_actions:
                print(f"  {line}")

        if not round_.over:
            print(f"  Stopped after {settings.autoplay_max_steps} rolls without a winner")
            break
        outcome = round_.result
        print(f"  {session.player_name(outcome.winner)} wins by {outcome.win_type.value}ing "
              f"for {outcome.score} points")

    if loop.round.over:
        loop.finish_tournament()
    scores = loop.tournament.scores()
    winner = loop.tournament.tournament_winner()
    print()
    for pid, score in scores.items():
        print(f"{session.player_name(pid)}: {score}")
    print("Match drawn" if winner is None else f"Match winner: {session.player_name(winner)}")


def cmd_inspect(args):
    """Show a saved game."""
    from .engine_core.state import MoveType, PlayerId, RoundPhase
    from .snapshot import deserialize, restore

    try:
        with open(args.save_file, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.save_file}")
        sys.exit(1)

    snapshot = deserialize(text)
    restored = restore(snapshot)
    round_ = restored.round

    print(f"Round {snapshot.round_number} on {snapshot.board_size} squares, phase {round_.phase.value}")
    for pid in (PlayerId.COMPUTER, PlayerId.HUMAN):
        player = restored.tournament.players[pid]
        print(f"{pid.label:<9} {round_.board(pid).render()}   score {player.cumulative_score}")
    print(f"First turn: {round_.first_player.label}   Next turn: {round_.current_player.label}")

    lock = round_.advantage_lock
    if lock:
        state = "unlocked" if lock.unlocked else "locked"
        print(f"Advantage: square {lock.square} for {lock.holder.label} ({state})")

    if round_.phase is RoundPhase.AWAITING_MOVE:
        options = round_.current_options()
        print(f"Pending roll: {round_.pending_roll.total}")
        for move_type in MoveType:
            combos = options.get(move_type, [])
            print(f"  {move_type.value}: {', '.join(str(list(c)) for c in combos) or 'none'}")
    elif round_.over:
        result = round_.result
        print(f"Round won by {result.winner.label} ({result.win_type.value}) for {result.score}")
    if snapshot.queued_rolls:
        print(f"Queued rolls: {len(snapshot.queued_rolls)}")


def cmd_serve(args, settings: Settings):
    """Run the REST API with uvicorn."""
    import uvicorn

    from .api import create_app

    logger.info("Serving Canoga API on %s:%d (%s)", args.host, args.port, settings.env)
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
