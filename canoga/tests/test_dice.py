"""
Tests for dice: seeded rolls and the queue.
"""

import pytest

from ..engine_core.dice import StandardDice
from ..engine_core.errors import OutOfRange
from ..engine_core.state import DiceRoll


class TestStandardDice:

    def test_seeded_dice_repeat(self):
        a = StandardDice(seed=42)
        b = StandardDice(seed=42)
        assert [a.roll(2) for _ in range(10)] == [b.roll(2) for _ in range(10)]

    def test_values_in_range(self):
        dice = StandardDice(seed=1)
        for _ in range(50):
            roll = dice.roll(2)
            assert 1 <= roll.d1 <= 6
            assert 1 <= roll.d2 <= 6
        assert dice.roll(1).d2 is None

    def test_queue_consumed_by_matching_count(self):
        """A queued one-die entry waits for a one-die roll."""
        dice = StandardDice(queue=[DiceRoll(5), DiceRoll(3, 4)])
        assert dice.roll(2) == DiceRoll(3, 4)
        assert dice.queue == [DiceRoll(5)]
        assert dice.roll(1) == DiceRoll(5)
        assert dice.queue == []

    def test_enqueue(self):
        dice = StandardDice()
        dice.enqueue(6, 6)
        assert dice.roll(2).total == 12

    def test_bad_count(self):
        with pytest.raises(OutOfRange):
            StandardDice().roll(0)

    @pytest.mark.parametrize("values", [(7,), (0, 3), (1, 2, 3), ()])
    def test_bad_values(self, values):
        with pytest.raises(OutOfRange):
            StandardDice().enqueue(*values)


class TestDiceRoll:

    def test_total_and_count(self):
        assert DiceRoll(3, 4).total == 7
        assert DiceRoll(3, 4).count == 2
        assert DiceRoll(5).count == 1
        assert DiceRoll.of([2]).values() == [2]
