"""
Round - One game of Canoga to a win condition.

Turn state machine:
    AWAITING_ROLL -> AWAITING_MOVE -> AWAITING_ROLL -> ... -> ROUND_OVER

After a move the same player rolls again. A turn ends when a roll has no
legal cover or uncover combination; AWAITING_MOVE is skipped for that
roll and play passes to the opponent.

Win conditions only take effect once both players have taken at least
one turn this round. A fresh board is fully uncovered, which is one of
the winning shapes, so checking earlier would end rounds at the start.

Every operation validates before mutating: a rejected call leaves the
round exactly as it was.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging

from .board import Board, CombinationMode
from .dice import Dice
from .errors import ConfigError, InvalidMove, OneDieNotAllowed, OutOfRange, WrongPhase
from .move import Move
from .state import (
    Advantage,
    AdvantageContext,
    AdvantageLock,
    DiceRoll,
    MoveType,
    Player,
    PlayerId,
    RoundPhase,
    RoundResult,
    WinType,
    MIN_BOARD_SIZE,
    MAX_BOARD_SIZE,
)

logger = logging.getLogger(__name__)


def validate_board_size(board_size: Any) -> int:
    """Return board_size if it is an int in [9, 11], else raise ConfigError."""
    if (
        not isinstance(board_size, int)
        or isinstance(board_size, bool)
        or not MIN_BOARD_SIZE <= board_size <= MAX_BOARD_SIZE
    ):
        raise ConfigError(
            f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {board_size!r}",
            details={"board_size": board_size},
        )
    return board_size


@dataclass
class RollOutcome:
    """What a roll made possible."""
    roll: DiceRoll
    player: PlayerId
    cover_options: list[tuple[int, ...]] = field(default_factory=list)
    uncover_options: list[tuple[int, ...]] = field(default_factory=list)

    # True when the roll had no legal move and the turn passed on
    turn_ended: bool = False
    result: RoundResult | None = None

    @property
    def can_move(self) -> bool:
        return bool(self.cover_options or self.uncover_options)


class Round:
    """
    Two boards, whose turn it is, and what has happened so far.

    Players are shared with the tournament: a win adds the round score to
    the winner's cumulative score.
    """

    def __init__(
        self,
        board_size: int,
        first_player: PlayerId,
        players: dict[PlayerId, Player] | None = None,
        advantage: Advantage | None = None,
    ):
        self.players: dict[PlayerId, Player] = players or {
            pid: Player(player_id=pid, name=pid.label) for pid in PlayerId
        }
        self._listeners: list[Callable[[Round], None]] = []
        self.start(board_size, first_player, advantage)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, board_size: int, first_player: PlayerId, advantage: Advantage | None = None):
        """
        Reset both boards and apply any carried-over advantage.

        An advantage whose square is outside the board is ignored.
        """
        validate_board_size(board_size)
        if not isinstance(first_player, PlayerId):
            raise ConfigError(f"Unknown first player: {first_player!r}")

        self.board_size = board_size
        for pid in PlayerId:
            self.players[pid].board = Board(size=board_size, owner=pid)

        self.first_player = first_player
        self.current_player = first_player
        self.phase = RoundPhase.AWAITING_ROLL
        self.pending_roll: DiceRoll | None = None
        self.result: RoundResult | None = None
        self.advantage_lock: AdvantageLock | None = None

        self._options: dict[MoveType, list[tuple[int, ...]]] = {}
        self._played: set[PlayerId] = set()
        self._ever_covered: set[PlayerId] = set()

        if advantage is not None:
            if 1 <= advantage.square <= board_size:
                self.board(advantage.player).cover(advantage.square)
                self._ever_covered.add(advantage.player)
                self.advantage_lock = AdvantageLock(holder=advantage.player, square=advantage.square)
                logger.info(
                    "Advantage: %s starts with square %d covered",
                    advantage.player.label, advantage.square,
                )
            else:
                logger.info(
                    "Advantage square %d is outside a %d-square board, ignored",
                    advantage.square, board_size,
                )

    @classmethod
    def resume(
        cls,
        boards: dict[PlayerId, list[int]],
        first_player: PlayerId,
        current_player: PlayerId,
        players: dict[PlayerId, Player] | None = None,
        phase: RoundPhase = RoundPhase.AWAITING_ROLL,
        pending_roll: DiceRoll | None = None,
        advantage_lock: AdvantageLock | None = None,
        played: set[PlayerId] | None = None,
        result: RoundResult | None = None,
    ) -> Round:
        """
        Rebuild a round mid-play from board arrays and turn data.

        Scores are taken as they are on the players; nothing is re-scored.
        Boards that have any covered square count as having been covered
        this round. played=None means both players have already played.
        """
        size = len(boards[PlayerId.HUMAN])
        round_ = cls(size, first_player, players=players)
        for pid in PlayerId:
            board = Board.from_array(boards[pid], owner=pid)
            round_.players[pid].board = board
            if board.covered:
                round_._ever_covered.add(pid)

        round_.current_player = current_player
        round_.advantage_lock = advantage_lock.copy() if advantage_lock else None
        round_._played = set(PlayerId) if played is None else set(played)
        round_.result = result
        round_.phase = RoundPhase.ROUND_OVER if result is not None else phase

        if round_.phase is RoundPhase.AWAITING_MOVE:
            if pending_roll is None:
                raise WrongPhase("A round awaiting a move needs the pending dice roll")
            round_.pending_roll = pending_roll
            round_._options = {
                MoveType.COVER: round_.legal_moves(current_player, MoveType.COVER, pending_roll.total),
                MoveType.UNCOVER: round_.legal_moves(current_player, MoveType.UNCOVER, pending_roll.total),
            }
        return round_

    def add_listener(self, callback: Callable[[Round], None]):
        """Register a callback run once when the round is won."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def board(self, player_id: PlayerId) -> Board:
        return self.players[player_id].board

    @property
    def over(self) -> bool:
        return self.result is not None

    @property
    def winner(self) -> PlayerId | None:
        return self.result.winner if self.result else None

    @property
    def win_type(self) -> WinType | None:
        return self.result.win_type if self.result else None

    @property
    def round_score(self) -> int:
        return self.result.score if self.result else 0

    @property
    def played(self) -> set[PlayerId]:
        """Players who have taken at least one turn this round."""
        return set(self._played)

    def advantage_context(self) -> AdvantageContext | None:
        return AdvantageContext.from_lock(self.advantage_lock)

    def can_use_one_die(self, player_id: PlayerId | None = None) -> bool:
        return self.board(player_id or self.current_player).can_use_one_die()

    # ------------------------------------------------------------------
    # Rolling
    # ------------------------------------------------------------------

    def roll(self, dice: Dice, count: int) -> RollOutcome:
        """Roll for the current player through the dice collaborator."""
        self._check_can_roll(count)
        return self._accept(dice.roll(count))

    def accept_roll(self, dice_roll: DiceRoll) -> RollOutcome:
        """Use dice values supplied by the driver (manual entry)."""
        self._check_can_roll(dice_roll.count)
        return self._accept(dice_roll)

    def _check_can_roll(self, count: int):
        if self.phase is not RoundPhase.AWAITING_ROLL:
            raise WrongPhase(
                f"Cannot roll while {self.phase.value}",
                details={"phase": self.phase.value},
            )
        if count not in (1, 2):
            raise OutOfRange(f"Dice count must be 1 or 2, got {count!r}", details={"count": count})
        if count == 1 and not self.can_use_one_die():
            raise OneDieNotAllowed(
                f"{self.current_player.label} may roll one die only when squares "
                f"7..{self.board_size} are all covered"
            )

    def _accept(self, dice_roll: DiceRoll) -> RollOutcome:
        player = self.current_player
        self._played.add(player)

        cover = self.legal_moves(player, MoveType.COVER, dice_roll.total)
        uncover = self.legal_moves(player, MoveType.UNCOVER, dice_roll.total)
        outcome = RollOutcome(
            roll=dice_roll,
            player=player,
            cover_options=cover,
            uncover_options=uncover,
        )
        logger.debug(
            "%s rolled %s (total %d): %d cover / %d uncover options",
            player.label, dice_roll.values(), dice_roll.total, len(cover), len(uncover),
        )

        if not outcome.can_move:
            outcome.turn_ended = True
            outcome.result = self._end_turn()
            return outcome

        self.pending_roll = dice_roll
        self._options = {MoveType.COVER: cover, MoveType.UNCOVER: uncover}
        self.phase = RoundPhase.AWAITING_MOVE
        return outcome

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def legal_moves(self, actor: PlayerId, move_type: MoveType, dice_total: int) -> list[tuple[int, ...]]:
        """
        Combinations available to actor for dice_total.

        Cover searches the actor's own board; uncover searches the
        opponent's, honoring a still-locked advantage square.
        """
        if move_type is MoveType.COVER:
            return self.board(actor).find_combinations(dice_total, CombinationMode.FOR_COVERING)
        return self.board(actor.opponent).find_combinations(
            dice_total,
            CombinationMode.FOR_UNCOVERING,
            advantage=self.advantage_context(),
        )

    def current_options(self) -> dict[MoveType, list[tuple[int, ...]]]:
        """Options computed for the pending roll (empty unless awaiting a move)."""
        return {k: list(v) for k, v in self._options.items()}

    def apply(self, move: Move) -> RoundResult | None:
        """
        Apply a move chosen from the options of the pending roll.

        Returns the round result if this move won the round.
        """
        if self.phase is not RoundPhase.AWAITING_MOVE:
            raise WrongPhase(
                f"Cannot apply a move while {self.phase.value}",
                details={"phase": self.phase.value},
            )
        if move.actor is not self.current_player:
            raise WrongPhase(f"Not {move.actor.label}'s turn")
        if move.dice_total != self.pending_roll.total:
            raise InvalidMove(
                f"Move answers a total of {move.dice_total}, but the dice show {self.pending_roll.total}"
            )
        if move.squares not in self._options.get(move.move_type, []):
            raise InvalidMove(
                f"{move.move_type.value.capitalize()} {list(move.squares)} is not a legal move for "
                f"a total of {move.dice_total}",
                details={"squares": list(move.squares), "move_type": move.move_type.value},
            )

        if move.move_type is MoveType.COVER:
            self.board(move.actor).cover_squares(move.squares)
            self._ever_covered.add(move.actor)
        else:
            self.board(move.actor.opponent).uncover_squares(move.squares)
        logger.info("%s", move.describe())

        self.pending_roll = None
        self._options = {}
        self.phase = RoundPhase.AWAITING_ROLL
        return self._evaluate_end()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def notify_turn_ended(self, player_id: PlayerId):
        """
        Record that player_id's turn is over.

        The advantage protection lasts exactly one turn of the holder's
        opponent.
        """
        lock = self.advantage_lock
        if lock is not None and not lock.unlocked and player_id is lock.holder.opponent:
            lock.unlocked = True
            logger.debug("Advantage square %d of %s is no longer protected", lock.square, lock.holder.label)

    def switch_turn(self):
        if self.over:
            raise WrongPhase("The round is over")
        self.current_player = self.current_player.opponent
        self.pending_roll = None
        self._options = {}
        self.phase = RoundPhase.AWAITING_ROLL

    def _end_turn(self) -> RoundResult | None:
        self.notify_turn_ended(self.current_player)
        result = self._evaluate_end()
        if result is None:
            self.switch_turn()
        return result

    # ------------------------------------------------------------------
    # Round end
    # ------------------------------------------------------------------

    def _evaluate_end(self) -> RoundResult | None:
        if self.over:
            return self.result
        if len(self._played) < len(PlayerId):
            return None

        for pid in PlayerId:
            own = self.board(pid)
            other = self.board(pid.opponent)
            if own.all_covered:
                return self._finish(RoundResult(pid, WinType.COVER, sum(other.uncovered)))
            if other.all_uncovered and pid.opponent in self._ever_covered:
                return self._finish(RoundResult(pid, WinType.UNCOVER, sum(own.covered)))
        return None

    def _finish(self, result: RoundResult) -> RoundResult:
        self.result = result
        self.phase = RoundPhase.ROUND_OVER
        self.pending_roll = None
        self._options = {}
        self.players[result.winner].add_to_score(result.score)
        logger.info(
            "Round over: %s wins by %s, scoring %d",
            result.winner.label, result.win_type.value, result.score,
        )
        for callback in self._listeners:
            callback(self)
        return result
