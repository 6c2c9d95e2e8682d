"""
Game Loop - Drives a session's rounds roll by roll.

The loop:
1. Roll-off decides who moves first (ties re-roll)
2. A round starts, seeded with any carried advantage
3. The current player rolls
4. A human picks one of the listed options; a bot decides by policy
5. Repeat until a roll has no legal move, then play passes on
6. The round ends; the tournament computes the next advantage

Every step that changes the round is recorded in the session history so
the driver can rewind to it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..bots import BotDecision
from ..engine_core.errors import CanogaError, OutOfRange, WrongPhase
from ..engine_core.move import Move, MoveResult
from ..engine_core.round import Round, RollOutcome, validate_board_size
from ..engine_core.state import DiceRoll, MoveType, PlayerId, RoundPhase, RoundResult
from ..engine_core.tournament import RollOff
from ..snapshot import capture, deserialize, restore, serialize_state
from .manager import SessionState

if TYPE_CHECKING:
    from .manager import Session

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 500
MAX_ROLL_OFF_ATTEMPTS = 100


@dataclass
class TurnResult:
    """
    Result of a driver step.

    Contains the roll (if any), the options it opened, what the bots did,
    and the round result if the round ended.
    """
    success: bool
    phase: RoundPhase | None
    current_player: PlayerId | None

    roll: DiceRoll | None = None
    cover_options: list[tuple[int, ...]] = field(default_factory=list)
    uncover_options: list[tuple[int, ...]] = field(default_factory=list)
    turn_ended: bool = False

    # Log lines for automated play
    automa_actions: list[str] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)

    round_over: bool = False
    result: RoundResult | None = None
    switched_to_human: bool = False


class GameLoop:
    """
    The driver between a UI/controller and the engine.

    Usage:
        loop = GameLoop(session)
        loop.start_round(9)           # roll-off picks the first player
        result = loop.roll(2)
        if result.cover_options:
            loop.apply_move(MoveType.COVER, result.cover_options[0])
        loop.run_automa()             # computer turns
    """

    def __init__(self, session: Session, max_steps: int = DEFAULT_MAX_STEPS):
        self.session = session
        self.max_steps = max_steps

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def round(self) -> Round:
        round_ = self.session.round
        if round_ is None:
            raise WrongPhase("No active round")
        return round_

    @property
    def tournament(self):
        return self.session.tournament

    def _push_history(self, label: str):
        self.session.history.push(label, capture(self.round, self.tournament, self.session.dice.queue))

    def _result(self, success: bool = True, **kwargs) -> TurnResult:
        round_ = self.session.round
        if round_ is not None and round_.over:
            kwargs.setdefault("round_over", True)
            kwargs.setdefault("result", round_.result)
        return TurnResult(
            success=success,
            phase=round_.phase if round_ else None,
            current_player=round_.current_player if round_ else None,
            **kwargs,
        )

    def _after_step(self):
        if self.round.over:
            self.session.state = SessionState.ROUND_OVER

    # ------------------------------------------------------------------
    # Round setup
    # ------------------------------------------------------------------

    def roll_off(self) -> RollOff:
        """One roll-off; the result may be a tie."""
        outcome = self.tournament.roll_off(self.session.dice)
        logger.info(
            "Roll-off: %s",
            ", ".join(f"{pid.label} {total}" for pid, total in outcome.rolls.items()),
        )
        return outcome

    def decide_first_player(self) -> PlayerId:
        """Roll off until there is no tie."""
        for _ in range(MAX_ROLL_OFF_ATTEMPTS):
            outcome = self.roll_off()
            if not outcome.tied:
                return outcome.first_player
        raise WrongPhase(f"Roll-off tied {MAX_ROLL_OFF_ATTEMPTS} times in a row")

    def start_round(self, board_size: int, first_player: PlayerId | None = None) -> TurnResult:
        """Start the next round. The history restarts with it."""
        current = self.session.round
        if current is not None and not current.over:
            raise WrongPhase("The current round is not over")

        validate_board_size(board_size)
        if first_player is None:
            first_player = self.decide_first_player()
        self.tournament.start_round(board_size, first_player)
        self.session.state = SessionState.ACTIVE
        self.session.history.clear()
        self._push_history(
            f"Round {self.tournament.round_number} start (first: {self.session.player_name(first_player)})"
        )
        return self._result()

    # ------------------------------------------------------------------
    # Rolling and moving
    # ------------------------------------------------------------------

    def roll(self, count: int | None = None, values: list[int] | None = None) -> TurnResult:
        """
        Roll for the current player.

        With values, the given die values are used instead of the dice;
        count, if also given, must match their number.
        """
        round_ = self.round
        player = round_.current_player

        if values is not None:
            dice_roll = DiceRoll.of(values)
            if count is not None and count != dice_roll.count:
                raise OutOfRange(f"Expected {count} die values, got {dice_roll.count}")
            outcome = round_.accept_roll(dice_roll)
        else:
            outcome = round_.roll(self.session.dice, count if count is not None else 2)

        changes = [f"{self.session.player_name(player)} rolled {outcome.roll.total}"]
        if outcome.turn_ended:
            changes.append("No moves available. Turn ends.")
            self._push_history(f"{self.session.player_name(player)} rolled {outcome.roll.total}, no moves")
            self._after_step()

        return self._result(
            roll=outcome.roll,
            cover_options=outcome.cover_options,
            uncover_options=outcome.uncover_options,
            turn_ended=outcome.turn_ended,
            changes=changes,
        )

    def legal_moves(self) -> dict[MoveType, list[tuple[int, ...]]]:
        """Options for the pending roll."""
        round_ = self.round
        if round_.phase is not RoundPhase.AWAITING_MOVE:
            raise WrongPhase("No pending roll")
        return round_.current_options()

    def apply_move(self, move_type: MoveType, squares) -> MoveResult:
        """Apply the current player's chosen combination."""
        round_ = self.round
        if round_.phase is not RoundPhase.AWAITING_MOVE:
            raise WrongPhase(
                f"Cannot apply a move while {round_.phase.value}",
                details={"phase": round_.phase.value},
            )
        move = Move(
            actor=round_.current_player,
            move_type=move_type,
            dice_total=round_.pending_roll.total,
            squares=tuple(squares),
        )
        result = round_.apply(move)
        label = self._describe_move(move.actor, move.move_type, move.squares)
        self._push_history(label)
        self._after_step()
        return MoveResult.applied(move, changes=[label], result=result)

    def try_move(self, move_type: MoveType, squares) -> MoveResult:
        """
        Like apply_move, but a rejected move comes back as a failed
        MoveResult instead of raising.
        """
        try:
            return self.apply_move(move_type, squares)
        except CanogaError as e:
            logger.debug("Move rejected: %s", e.message)
            return MoveResult.failure(e.message, e.error_code)

    def suggest(self) -> BotDecision:
        """What the strategy would do with the pending roll."""
        round_ = self.round
        if round_.pending_roll is None:
            raise WrongPhase("Roll first to get a suggestion")
        return self.session.help_policy.decide(round_, round_.current_player, round_.pending_roll.total)

    # ------------------------------------------------------------------
    # Automated play
    # ------------------------------------------------------------------

    def run_automa(self) -> TurnResult:
        """
        Play computer-controlled turns.

        Stops when a human-controlled turn begins, the round ends, or
        max_steps rolls have been made.
        """
        round_ = self.round
        log: list[str] = []
        steps = 0

        while (
            not round_.over
            and round_.phase is RoundPhase.AWAITING_ROLL
            and not self.session.mode.is_human_controlled(round_.current_player)
            and steps < self.max_steps
        ):
            steps += 1
            player = round_.current_player
            name = self.session.player_name(player)
            policy = self.session.bots[player]
            logger.debug("%s plays with %s", name, policy.get_name())

            count = policy.choose_dice_count(round_.board(player))
            outcome = round_.roll(self.session.dice, count)
            log.append(self._describe_roll(name, outcome))

            if outcome.turn_ended:
                log.append("No moves available. Turn ends.")
                self._push_history(f"{name} rolled {outcome.roll.total}, no moves")
                continue

            decision = policy.decide(round_, player, outcome.roll.total)
            log.append(
                f"{name} decision: {decision.describe()} - {decision.reason} "
                f"Options seen: {len(decision.cover_options)} cover | {len(decision.uncover_options)} uncover."
            )
            round_.apply(decision.to_move())
            self._push_history(self._describe_move(player, decision.action, decision.squares))

        if steps >= self.max_steps and not round_.over:
            logger.warning("Automated play stopped after %d rolls", steps)
        if round_.over:
            log.append("=== ROUND OVER ===")
        self._after_step()

        return self._result(
            automa_actions=log,
            switched_to_human=self.session.is_human_turn(),
        )

    def _describe_move(self, player: PlayerId, move_type: MoveType, squares) -> str:
        return f"{self.session.player_name(player)} {move_type.value}s [{', '.join(str(s) for s in squares)}]"

    @staticmethod
    def _describe_roll(name: str, outcome: RollOutcome) -> str:
        dice = " + ".join(str(v) for v in outcome.roll.values())
        return f"{name} rolled {dice} (sum = {outcome.roll.total})"

    # ------------------------------------------------------------------
    # Save / load / rewind
    # ------------------------------------------------------------------

    def save(self) -> str:
        """The current state in save-file text."""
        return serialize_state(self.round, self.tournament, self.session.dice.queue)

    def load(self, text: str) -> TurnResult:
        """Replace the session's game with a saved one."""
        snapshot = deserialize(text)
        self._install(snapshot)
        self.session.history.clear()
        self._push_history(f"Loaded snapshot (first: {self.session.player_name(snapshot.first_turn)})")
        return self._result(changes=["Game loaded from saved text."])

    def history_entries(self) -> list[tuple[int, str]]:
        return self.session.history.entries()

    def rewind(self, index: int) -> TurnResult:
        """Make history entry `index` the live state."""
        entry = self.session.history.get(index)
        snapshot = self.session.history.rewind(index)
        self._install(snapshot, keep_summaries=True)
        return self._result(changes=[f"Rewound to: {entry.label}"])

    def _install(self, snapshot, keep_summaries: bool = False):
        restored = restore(snapshot)
        if keep_summaries and self.session.tournament is not None:
            # Only rounds finished before the restored point
            number = snapshot.round_number
            restored.tournament.summaries = [
                s for s in self.session.tournament.summaries
                if s.round_number < number or (s.round_number == number and restored.round.over)
            ]
        self.session.tournament = restored.tournament
        self.session.dice.set_queue(restored.queued_rolls)
        self.session.state = (
            SessionState.ROUND_OVER if restored.round.over else SessionState.ACTIVE
        )

    # ------------------------------------------------------------------

    def finish_tournament(self) -> PlayerId | None:
        """End the match. Returns the winner, None for a draw."""
        round_ = self.session.round
        if round_ is not None and not round_.over:
            raise WrongPhase("Finish the current round first")
        self.session.state = SessionState.GAME_OVER
        return self.tournament.tournament_winner()
