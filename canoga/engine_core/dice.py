"""
Dice - The source of rolls.

Dice is the collaborator contract: roll(count) returns a DiceRoll of one
or two dice. StandardDice is backed by a random.Random and an optional
queue of pre-loaded rolls. A queued entry with the requested number of
dice is always consumed before the RNG is asked.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import random

from .errors import OutOfRange
from .state import DiceRoll, DIE_FACES


class Dice(ABC):
    """Interface for anything that can roll one or two dice."""

    @abstractmethod
    def roll(self, count: int) -> DiceRoll:
        """
        Roll `count` dice.

        Args:
            count: 1 or 2

        Returns:
            DiceRoll with d2 set only for two dice
        """
        pass


class StandardDice(Dice):
    """
    Random dice with a deterministic queue in front.

    Used for:
    - Normal play (seeded or unseeded RNG)
    - Tests and demos (queued values)
    - Restoring a saved game (queue persisted in the snapshot)
    """

    def __init__(self, seed: int | None = None, queue: list[DiceRoll] | None = None):
        self.rng = random.Random(seed)
        self.queue: list[DiceRoll] = list(queue or [])

    def set_queue(self, entries: list[DiceRoll]):
        """Replace the queued rolls."""
        self.queue = list(entries)

    def enqueue(self, *values: int):
        """Append one queued roll, e.g. enqueue(3, 4) or enqueue(5)."""
        self.queue.append(DiceRoll.of(values))

    def roll(self, count: int) -> DiceRoll:
        if count not in (1, 2):
            raise OutOfRange(f"Dice count must be 1 or 2, got {count!r}", details={"count": count})

        for index, entry in enumerate(self.queue):
            if entry.count == count:
                return self.queue.pop(index)

        d1 = self.rng.randint(1, DIE_FACES)
        d2 = self.rng.randint(1, DIE_FACES) if count == 2 else None
        return DiceRoll(d1=d1, d2=d2)
