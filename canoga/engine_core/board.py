"""
Board - One player's row of numbered squares and the combination finder.

A square is either covered or uncovered. The combination finder answers
"which sets of my squares, chosen under a covering or uncovering
constraint, add up exactly to the dice total?".

The search is exhaustive ascending-order backtracking: candidates are
visited in increasing order and never revisited, so each subset is
produced exactly once and always in ascending order. Boards hold at most
eleven squares, so exhaustive search is cheap. There is no cap on the
number of squares in a combination beyond what the arithmetic implies.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .errors import ConfigError, InvalidMove, OutOfRange
from .state import AdvantageContext, PlayerId


ONE_DIE_THRESHOLD = 7


class CombinationMode(Enum):
    """Which squares are candidates for a combination."""
    FOR_COVERING = "for_covering"  # currently uncovered squares
    FOR_UNCOVERING = "for_uncovering"  # currently covered squares


@dataclass
class Board:
    """
    Squares 1..size for one owner.

    cover/uncover are strict (raise on a no-op); the bulk variants are
    all-or-nothing.
    """
    size: int
    owner: PlayerId
    _covered: set[int] = field(default_factory=set, repr=False)

    def __post_init__(self):
        if not isinstance(self.size, int) or self.size < 1:
            raise ConfigError(
                f"Board size must be a positive integer, got {self.size!r}",
                details={"size": self.size},
            )
        for square in self._covered:
            self._check_square(square)

    # ------------------------------------------------------------------
    # Single squares
    # ------------------------------------------------------------------

    def is_covered(self, square: int) -> bool:
        self._check_square(square)
        return square in self._covered

    def cover(self, square: int):
        self._check_square(square)
        if square in self._covered:
            raise InvalidMove(f"Square {square} is already covered")
        self._covered.add(square)

    def uncover(self, square: int):
        self._check_square(square)
        if square not in self._covered:
            raise InvalidMove(f"Square {square} is already uncovered")
        self._covered.discard(square)

    # ------------------------------------------------------------------
    # Bulk operations (atomic)
    # ------------------------------------------------------------------

    def cover_squares(self, squares: list[int] | tuple[int, ...]):
        """Cover every square or none of them."""
        self._check_distinct(squares)
        for square in squares:
            self._check_square(square)
            if square in self._covered:
                raise InvalidMove(f"Square {square} is already covered")
        self._covered.update(squares)

    def uncover_squares(self, squares: list[int] | tuple[int, ...]):
        """Uncover every square or none of them."""
        self._check_distinct(squares)
        for square in squares:
            self._check_square(square)
            if square not in self._covered:
                raise InvalidMove(f"Square {square} is already uncovered")
        self._covered.difference_update(squares)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def covered(self) -> list[int]:
        return sorted(self._covered)

    @property
    def uncovered(self) -> list[int]:
        return [n for n in range(1, self.size + 1) if n not in self._covered]

    @property
    def all_covered(self) -> bool:
        return len(self._covered) == self.size

    @property
    def all_uncovered(self) -> bool:
        return not self._covered

    def can_use_one_die(self) -> bool:
        """True iff every square from 7 up to size is covered."""
        if self.size < ONE_DIE_THRESHOLD:
            return True
        return all(n in self._covered for n in range(ONE_DIE_THRESHOLD, self.size + 1))

    def find_combinations(
        self,
        target: int,
        mode: CombinationMode,
        advantage: AdvantageContext | None = None,
    ) -> list[tuple[int, ...]]:
        """
        All sets of distinct candidate squares summing to target.

        When searching for uncovering against this board and the advantage
        is held by this board's owner and still locked, the advantage
        square is not a candidate.
        """
        if mode is CombinationMode.FOR_COVERING:
            candidates = self.uncovered
        else:
            candidates = self.covered
            if (
                advantage is not None
                and not advantage.unlocked
                and advantage.holder is self.owner
            ):
                candidates = [n for n in candidates if n != advantage.square]

        results: list[tuple[int, ...]] = []
        if target <= 0:
            return results

        path: list[int] = []

        def backtrack(start: int, remaining: int):
            if remaining == 0:
                results.append(tuple(path))
                return
            for i in range(start, len(candidates)):
                square = candidates[i]
                if square > remaining:
                    break
                path.append(square)
                backtrack(i + 1, remaining - square)
                path.pop()

        backtrack(0, target)
        return results

    # ------------------------------------------------------------------
    # Array format (0 = covered, n = uncovered square n)
    # ------------------------------------------------------------------

    def to_array(self) -> list[int]:
        return [0 if n in self._covered else n for n in range(1, self.size + 1)]

    @classmethod
    def from_array(cls, values: list[int], owner: PlayerId) -> Board:
        """Rebuild a board from its array format. Raises ValueError on bad entries."""
        covered = set()
        for index, value in enumerate(values, start=1):
            if value == 0:
                covered.add(index)
            elif value != index:
                raise ValueError(
                    f"Invalid board entry at position {index}: expected {index} or 0, got {value}"
                )
        return cls(size=len(values), owner=owner, _covered=covered)

    def copy(self) -> Board:
        return Board(size=self.size, owner=self.owner, _covered=set(self._covered))

    def render(self) -> str:
        return " ".join(str(v) for v in self.to_array())

    # ------------------------------------------------------------------

    def _check_square(self, square: int):
        if not isinstance(square, int) or isinstance(square, bool) or not 1 <= square <= self.size:
            raise OutOfRange(
                f"Square number must be between 1 and {self.size}, got {square!r}",
                details={"square": square, "size": self.size},
            )

    @staticmethod
    def _check_distinct(squares):
        if len(set(squares)) != len(squares):
            raise InvalidMove(f"Squares must be distinct, got {list(squares)}")
