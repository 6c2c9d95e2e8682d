"""
Tests for tournament scoring, advantage and roll-off.
"""

import pytest

from ..engine_core.errors import ConfigError
from ..engine_core.move import Move
from ..engine_core.round import Round
from ..engine_core.state import Advantage, DiceRoll, PlayerId
from ..engine_core.tournament import Tournament, digit_sum
from ..engine_core.dice import StandardDice
from .conftest import board_array


def finish_with_cover_win(tournament: Tournament, first_player: PlayerId) -> Round:
    """Human wins by covering, scoring 15."""
    round_ = Round.resume(
        boards={
            PlayerId.HUMAN: board_array(9, covered=range(1, 9)),
            PlayerId.COMPUTER: board_array(9, covered=range(6, 10)),
        },
        first_player=first_player,
        current_player=PlayerId.HUMAN,
        players=tournament.players,
    )
    tournament.round_number = 1
    tournament.attach(round_)
    round_.accept_roll(DiceRoll(4, 5))
    round_.apply(Move.cover(PlayerId.HUMAN, 9, [9]))
    return round_


class TestDigitSum:
    """Repeated digit sum."""

    @pytest.mark.parametrize("n,expected", [(23, 5), (15, 6), (99, 9), (7, 7), (0, 0), (45, 9)])
    def test_digit_sum(self, n, expected):
        assert digit_sum(n) == expected


class TestAdvantage:
    """Advantage carried into the next round."""

    def test_winner_who_moved_first_gives_advantage_away(self, tournament):
        finish_with_cover_win(tournament, first_player=PlayerId.HUMAN)
        assert tournament.pending_advantage == Advantage(PlayerId.COMPUTER, 6)

    def test_winner_who_moved_second_keeps_advantage(self, tournament):
        finish_with_cover_win(tournament, first_player=PlayerId.COMPUTER)
        assert tournament.pending_advantage == Advantage(PlayerId.HUMAN, 6)

    def test_zero_score_gives_no_advantage(self, tournament):
        round_ = Round.resume(
            boards={
                PlayerId.HUMAN: board_array(9),
                PlayerId.COMPUTER: board_array(9, covered=(3,)),
            },
            first_player=PlayerId.HUMAN,
            current_player=PlayerId.HUMAN,
            players=tournament.players,
        )
        tournament.attach(round_)
        round_.accept_roll(DiceRoll(1, 2))
        result = round_.apply(Move.uncover(PlayerId.HUMAN, 3, [3]))
        assert result.score == 0
        assert tournament.pending_advantage is None

    def test_next_round_applies_advantage(self, tournament):
        finish_with_cover_win(tournament, first_player=PlayerId.HUMAN)
        round_ = tournament.start_round(9, PlayerId.COMPUTER)

        assert tournament.round_number == 2
        assert tournament.pending_advantage is None
        assert round_.board(PlayerId.COMPUTER).covered == [6]
        assert round_.advantage_lock.holder is PlayerId.COMPUTER

    def test_summary_recorded(self, tournament):
        finish_with_cover_win(tournament, first_player=PlayerId.HUMAN)
        assert len(tournament.summaries) == 1
        summary = tournament.summaries[0]
        assert summary.result.score == 15
        assert summary.advantage_granted == Advantage(PlayerId.COMPUTER, 6)


class TestScores:
    """Cumulative scores and the match winner."""

    def test_scores_accumulate(self, tournament):
        finish_with_cover_win(tournament, first_player=PlayerId.HUMAN)
        assert tournament.scores() == {PlayerId.HUMAN: 15, PlayerId.COMPUTER: 0}
        assert tournament.tournament_winner() is PlayerId.HUMAN

    def test_draw(self, tournament):
        assert tournament.tournament_winner() is None

    def test_start_round_validates_size(self, tournament):
        with pytest.raises(ConfigError):
            tournament.start_round(12, PlayerId.HUMAN)
        assert tournament.round_number == 0


class TestRollOff:
    """Roll-off for the first turn."""

    def test_higher_total_moves_first(self, tournament):
        dice = StandardDice(queue=[DiceRoll(3, 4), DiceRoll(2, 2)])
        outcome = tournament.roll_off(dice)
        assert outcome.rolls == {PlayerId.HUMAN: 7, PlayerId.COMPUTER: 4}
        assert outcome.first_player is PlayerId.HUMAN

    def test_tie(self, tournament):
        dice = StandardDice(queue=[DiceRoll(3, 3), DiceRoll(2, 4)])
        outcome = tournament.roll_off(dice)
        assert outcome.tied
        assert outcome.first_player is None
