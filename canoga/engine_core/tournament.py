"""
Tournament - Cumulative scores across rounds and the carried-over advantage.

At the end of every round the winning score is reduced to a single digit
(repeated digit sum). That digit becomes a square pre-covered for one
player at the start of the next round:

- if the winner also moved first that round, the OTHER player gets it;
- otherwise the winner keeps it.

A player who wins with the edge of moving first does not also keep the
handicap bonus.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .dice import Dice
from .round import Round, validate_board_size
from .state import Advantage, Player, PlayerId, RoundResult

logger = logging.getLogger(__name__)


def digit_sum(n: int) -> int:
    """Sum decimal digits repeatedly until a single digit remains."""
    if n < 0:
        raise ValueError(f"digit_sum needs a non-negative integer, got {n}")
    while n >= 10:
        n = sum(int(c) for c in str(n))
    return n


@dataclass(frozen=True)
class RollOff:
    """Two-dice roll-off deciding who moves first."""
    rolls: dict[PlayerId, int]
    first_player: PlayerId | None

    @property
    def tied(self) -> bool:
        return self.first_player is None


@dataclass(frozen=True)
class RoundSummary:
    """What a finished round left behind."""
    round_number: int
    board_size: int
    first_player: PlayerId
    result: RoundResult | None
    advantage_granted: Advantage | None


@dataclass
class Tournament:
    """
    The ongoing match.

    Usage:
        tournament = Tournament()
        round_ = tournament.start_round(9, PlayerId.HUMAN)
        ... drive the round ...
        tournament.tournament_winner()
    """
    players: dict[PlayerId, Player] = field(
        default_factory=lambda: {pid: Player(player_id=pid, name=pid.label) for pid in PlayerId}
    )
    round_number: int = 0
    pending_advantage: Advantage | None = None
    current_round: Round | None = None
    summaries: list[RoundSummary] = field(default_factory=list)

    def start_round(self, board_size: int, first_player: PlayerId) -> Round:
        """Start the next round, seeded with the pending advantage."""
        validate_board_size(board_size)
        round_ = Round(
            board_size,
            first_player,
            players=self.players,
            advantage=self.pending_advantage,
        )
        self.round_number += 1
        self.pending_advantage = None
        self.attach(round_)
        logger.info(
            "Round %d started on %d squares, %s moves first",
            self.round_number, board_size, first_player.label,
        )
        return round_

    def attach(self, round_: Round):
        """Make round_ the current round and listen for its end."""
        self.current_round = round_
        round_.add_listener(self.finish_round)

    def finish_round(self, round_: Round):
        """Called by the round when it is won."""
        self.pending_advantage = self.compute_next_advantage(round_)
        self.summaries.append(
            RoundSummary(
                round_number=self.round_number,
                board_size=round_.board_size,
                first_player=round_.first_player,
                result=round_.result,
                advantage_granted=self.pending_advantage,
            )
        )

    def compute_next_advantage(self, finished_round: Round) -> Advantage | None:
        """The advantage the next round starts with, if any."""
        if finished_round.winner is None or finished_round.round_score <= 0:
            return None

        square = digit_sum(finished_round.round_score)
        if not 1 <= square <= finished_round.board_size:
            return None

        if finished_round.winner is finished_round.first_player:
            recipient = finished_round.winner.opponent
        else:
            recipient = finished_round.winner

        logger.info(
            "Next round advantage: %s gets square %d (round score %d)",
            recipient.label, square, finished_round.round_score,
        )
        return Advantage(player=recipient, square=square)

    def roll_off(self, dice: Dice) -> RollOff:
        """Each player rolls two dice once; a tie leaves first_player None."""
        rolls = {pid: dice.roll(2).total for pid in PlayerId}
        human, computer = rolls[PlayerId.HUMAN], rolls[PlayerId.COMPUTER]
        if human > computer:
            first = PlayerId.HUMAN
        elif computer > human:
            first = PlayerId.COMPUTER
        else:
            first = None
        return RollOff(rolls=rolls, first_player=first)

    @property
    def rounds_played(self) -> int:
        """Finished rounds, counted from the round number so restored matches agree."""
        if self.current_round is None:
            return 0
        return self.round_number - (0 if self.current_round.over else 1)

    def scores(self) -> dict[PlayerId, int]:
        return {pid: p.cumulative_score for pid, p in self.players.items()}

    def tournament_winner(self) -> PlayerId | None:
        """Higher cumulative score wins; None is a draw."""
        human = self.players[PlayerId.HUMAN].cumulative_score
        computer = self.players[PlayerId.COMPUTER].cumulative_score
        if human > computer:
            return PlayerId.HUMAN
        if computer > human:
            return PlayerId.COMPUTER
        return None
