"""
Tests for the save-file text format.

Tests:
- Mandatory block layout
- Restoring mid-round and after a win
- Corrupt text is rejected with CorruptSnapshot
"""

import pytest

from ..engine_core.errors import CorruptSnapshot
from ..engine_core.move import Move
from ..engine_core.round import Round
from ..engine_core.state import (
    Advantage,
    AdvantageLock,
    DiceRoll,
    MoveType,
    PlayerId,
    RoundPhase,
    WinType,
)
from ..engine_core.tournament import Tournament
from ..snapshot import capture, deserialize, restore, serialize, serialize_state


MINIMAL_TEXT = """\
Computer:
   Squares: 1 2 0 4 5 6 7 8 9
   Score: 12

Human:
   Squares: 0 0 3 4 5 6 7 8 9
   Score: 0

First Turn: Human
Next Turn: Computer
"""


class TestFormat:

    def test_mandatory_layout(self):
        tournament = Tournament()
        round_ = tournament.start_round(9, PlayerId.HUMAN)
        lines = serialize_state(round_, tournament).splitlines()

        assert lines[0] == "Computer:"
        assert lines[1] == "   Squares: 1 2 3 4 5 6 7 8 9"
        assert lines[2] == "   Score: 0"
        assert lines[4] == "Human:"
        assert lines[8] == "First Turn: Human"
        assert lines[9] == "Next Turn: Human"
        assert "# Phase: awaitingRoll" in lines
        assert "# CurrentDice: - - (sum=-)" in lines

    def test_minimal_text(self):
        """Only the mandatory lines; metadata takes its defaults."""
        snapshot = deserialize(MINIMAL_TEXT)
        assert snapshot.boards[PlayerId.COMPUTER] == (1, 2, 0, 4, 5, 6, 7, 8, 9)
        assert snapshot.scores == {PlayerId.COMPUTER: 12, PlayerId.HUMAN: 0}
        assert snapshot.first_turn is PlayerId.HUMAN
        assert snapshot.next_turn is PlayerId.COMPUTER
        assert snapshot.phase is RoundPhase.AWAITING_ROLL
        assert snapshot.dice is None
        assert snapshot.played == frozenset(PlayerId)
        assert snapshot.board_size == 9

    def test_labels_are_case_insensitive(self):
        snapshot = deserialize(MINIMAL_TEXT.replace("First Turn: Human", "First Turn: HUMAN"))
        assert snapshot.first_turn is PlayerId.HUMAN


class TestRestore:

    def test_mid_round(self):
        tournament = Tournament()
        round_ = tournament.start_round(10, PlayerId.COMPUTER)
        round_.accept_roll(DiceRoll(5, 6))
        round_.apply(Move.cover(PlayerId.COMPUTER, 11, [1, 10]))
        round_.accept_roll(DiceRoll(2, 2))
        queued = [DiceRoll(3, 4), DiceRoll(5)]

        snapshot = capture(round_, tournament, queued)
        parsed = deserialize(serialize(snapshot))
        assert parsed == snapshot

        restored = restore(parsed)
        assert restored.round.phase is RoundPhase.AWAITING_MOVE
        assert restored.round.pending_roll == DiceRoll(2, 2)
        assert restored.round.board(PlayerId.COMPUTER).covered == [1, 10]
        assert restored.round.current_options() == round_.current_options()
        assert restored.queued_rolls == queued

    def test_advantage_lock_survives(self):
        tournament = Tournament(pending_advantage=Advantage(PlayerId.HUMAN, 5))
        round_ = tournament.start_round(9, PlayerId.COMPUTER)
        text = serialize_state(round_, tournament)
        assert "# AdvantageLock: Human 5 unlocked=false" in text

        restored = restore(deserialize(text))
        assert restored.round.advantage_lock == AdvantageLock(PlayerId.HUMAN, 5, False)
        assert restored.round.legal_moves(PlayerId.COMPUTER, MoveType.UNCOVER, 5) == []

    def test_after_win(self):
        """A finished round restores as finished, with the next advantage pending."""
        tournament = Tournament()
        round_ = tournament.start_round(9, PlayerId.HUMAN)
        restored = restore(deserialize(serialize_state(round_, tournament)))
        assert not restored.round.over

        near_win = Round.resume(
            boards={
                PlayerId.HUMAN: [0, 0, 0, 0, 0, 0, 0, 0, 9],
                PlayerId.COMPUTER: [1, 2, 3, 4, 5, 0, 0, 0, 0],
            },
            first_player=PlayerId.HUMAN,
            current_player=PlayerId.HUMAN,
            players=tournament.players,
        )
        tournament.attach(near_win)
        near_win.accept_roll(DiceRoll(4, 5))
        near_win.apply(Move.cover(PlayerId.HUMAN, 9, [9]))

        text = serialize_state(near_win, tournament)
        assert "# RoundResult: Human cover 15" in text
        assert "# PendingAdvantage: Computer 6" in text

        restored = restore(deserialize(text))
        assert restored.round.over
        assert restored.round.result.win_type is WinType.COVER
        assert restored.tournament.scores()[PlayerId.HUMAN] == 15
        assert restored.tournament.pending_advantage == Advantage(PlayerId.COMPUTER, 6)

    def test_played_set_survives(self):
        tournament = Tournament()
        round_ = tournament.start_round(9, PlayerId.HUMAN)
        round_.accept_roll(DiceRoll(1, 1))
        parsed = deserialize(serialize_state(round_, tournament))
        assert parsed.played == frozenset({PlayerId.HUMAN})


class TestCorruptText:

    def test_missing_block(self):
        text = MINIMAL_TEXT.replace("Human:\n", "")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_missing_turn_line(self):
        text = MINIMAL_TEXT.replace("Next Turn: Computer\n", "")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_entry_not_its_own_index(self):
        text = MINIMAL_TEXT.replace("1 2 0 4 5", "1 2 5 4 5")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_lengths_differ(self):
        text = MINIMAL_TEXT.replace("0 0 3 4 5 6 7 8 9", "0 0 3 4 5 6 7 8 9 10")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_board_too_small(self):
        text = MINIMAL_TEXT.replace(" 9\n", "\n")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_non_numeric(self):
        text = MINIMAL_TEXT.replace("Score: 12", "Score: twelve")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_negative_score(self):
        text = MINIMAL_TEXT.replace("Score: 12", "Score: -1")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_unknown_player(self):
        text = MINIMAL_TEXT.replace("First Turn: Human", "First Turn: Nobody")
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_awaiting_move_without_dice(self):
        text = MINIMAL_TEXT + "# Phase: awaitingMove\n"
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_dice_sum_mismatch(self):
        text = MINIMAL_TEXT + "# Phase: awaitingMove\n# CurrentDice: 3 4 (sum=8)\n"
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_empty_text(self):
        with pytest.raises(CorruptSnapshot):
            deserialize("")

    @pytest.mark.parametrize("flag", ["unlocked=garbage", "unlocked=", "unlocked", "locked=false"])
    def test_bad_unlocked_flag(self, flag):
        text = MINIMAL_TEXT + f"# AdvantageLock: Human 1 {flag}\n"
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    @pytest.mark.parametrize("flag, unlocked", [("unlocked=true", True), ("unlocked=FALSE", False)])
    def test_unlocked_flag_values(self, flag, unlocked):
        snapshot = deserialize(MINIMAL_TEXT + f"# AdvantageLock: Human 1 {flag}\n")
        assert snapshot.advantage_lock.unlocked is unlocked

    def test_locked_square_must_be_covered(self):
        """Human square 3 is uncovered, so it cannot still be locked."""
        text = MINIMAL_TEXT + "# AdvantageLock: Human 3 unlocked=false\n"
        with pytest.raises(CorruptSnapshot):
            deserialize(text)

    def test_unlocked_square_may_be_uncovered(self):
        snapshot = deserialize(MINIMAL_TEXT + "# AdvantageLock: Human 3 unlocked=true\n")
        assert snapshot.advantage_lock.square == 3
