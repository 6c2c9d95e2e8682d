"""
Snapshot Codec - Flat text save format for a round plus its tournament.

Format (mandatory part, fixed order):

    Computer:
       Squares: 1 2 0 4 5 6 7 8 9
       Score: 12

    Human:
       Squares: 0 0 3 4 5 6 7 8 9
       Score: 0

    First Turn: Human
    Next Turn: Computer

followed by optional metadata lines, in any order:

    # Phase: awaitingRoll
    # CurrentDice: 3 4 (sum=7)
    # AdvantageLock: Human 5 unlocked=false
    # QueuedRolls: 3,4 | 5
    # Round: 2
    # Played: Human Computer
    # RoundResult: Human cover 15
    # PendingAdvantage: Computer 6

In the Squares arrays 0 means covered and n means square n is uncovered.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import re

from ..engine_core.errors import CanogaError, ConfigError, CorruptSnapshot, OutOfRange
from ..engine_core.round import Round, validate_board_size
from ..engine_core.state import (
    Advantage,
    AdvantageLock,
    DiceRoll,
    Player,
    PlayerId,
    RoundPhase,
    RoundResult,
    WinType,
)
from ..engine_core.tournament import Tournament


# Block order in the text
BLOCK_ORDER = (PlayerId.COMPUTER, PlayerId.HUMAN)

_DICE_RE = re.compile(r"^(\S+)\s+(\S+)(?:\s+\(sum=(\S+)\))?$")
_UNLOCKED_FLAGS = {"unlocked=true": True, "unlocked=false": False}


@dataclass(frozen=True)
class Snapshot:
    """A round and its tournament flattened to plain values."""
    boards: dict[PlayerId, tuple[int, ...]]
    scores: dict[PlayerId, int]
    first_turn: PlayerId
    next_turn: PlayerId
    phase: RoundPhase = RoundPhase.AWAITING_ROLL
    dice: DiceRoll | None = None
    advantage_lock: AdvantageLock | None = None
    queued_rolls: tuple[DiceRoll, ...] = ()
    round_number: int = 1
    played: frozenset[PlayerId] = field(default_factory=lambda: frozenset(PlayerId))
    result: RoundResult | None = None
    pending_advantage: Advantage | None = None

    @property
    def board_size(self) -> int:
        return len(self.boards[PlayerId.HUMAN])


@dataclass
class RestoredGame:
    """Live objects rebuilt from a snapshot."""
    tournament: Tournament
    round: Round
    queued_rolls: list[DiceRoll]
    phase: RoundPhase


# =============================================================================
# Capture / restore
# =============================================================================

def capture(
    round_: Round,
    tournament: Tournament,
    queued_rolls: list[DiceRoll] | tuple[DiceRoll, ...] = (),
) -> Snapshot:
    """Flatten the live round and tournament into a Snapshot."""
    return Snapshot(
        boards={pid: tuple(round_.board(pid).to_array()) for pid in PlayerId},
        scores=tournament.scores(),
        first_turn=round_.first_player,
        next_turn=round_.current_player,
        phase=round_.phase,
        dice=round_.pending_roll,
        advantage_lock=round_.advantage_lock.copy() if round_.advantage_lock else None,
        queued_rolls=tuple(queued_rolls),
        round_number=max(tournament.round_number, 1),
        played=frozenset(round_.played),
        result=round_.result,
        pending_advantage=tournament.pending_advantage,
    )


def restore(snapshot: Snapshot) -> RestoredGame:
    """Rebuild a Tournament and its current Round from a Snapshot."""
    players = {
        pid: Player(player_id=pid, name=pid.label, cumulative_score=snapshot.scores[pid])
        for pid in PlayerId
    }
    tournament = Tournament(
        players=players,
        round_number=snapshot.round_number,
        pending_advantage=snapshot.pending_advantage,
    )
    try:
        round_ = Round.resume(
            boards={pid: list(values) for pid, values in snapshot.boards.items()},
            first_player=snapshot.first_turn,
            current_player=snapshot.next_turn,
            players=players,
            phase=snapshot.phase,
            pending_roll=snapshot.dice,
            advantage_lock=snapshot.advantage_lock,
            played=set(snapshot.played),
            result=snapshot.result,
        )
    except (CanogaError, ValueError) as e:
        raise CorruptSnapshot(f"Snapshot does not describe a playable round: {e}") from e
    tournament.attach(round_)
    return RestoredGame(
        tournament=tournament,
        round=round_,
        queued_rolls=list(snapshot.queued_rolls),
        phase=round_.phase,
    )


# =============================================================================
# Text
# =============================================================================

def serialize(snapshot: Snapshot) -> str:
    """Render a Snapshot in the save-file format."""
    lines: list[str] = []
    for pid in BLOCK_ORDER:
        lines.append(f"{pid.label}:")
        lines.append(f"   Squares: {' '.join(str(v) for v in snapshot.boards[pid])}")
        lines.append(f"   Score: {snapshot.scores[pid]}")
        lines.append("")
    lines.append(f"First Turn: {snapshot.first_turn.label}")
    lines.append(f"Next Turn: {snapshot.next_turn.label}")
    lines.append("")

    lines.append(f"# Phase: {snapshot.phase.value}")
    dice = snapshot.dice
    if dice is None:
        lines.append("# CurrentDice: - - (sum=-)")
    else:
        lines.append(f"# CurrentDice: {dice.d1} {dice.d2 if dice.d2 is not None else '-'} (sum={dice.total})")
    lock = snapshot.advantage_lock
    if lock is not None:
        lines.append(f"# AdvantageLock: {lock.holder.label} {lock.square} unlocked={str(lock.unlocked).lower()}")
    if snapshot.queued_rolls:
        rolls = " | ".join(",".join(str(v) for v in r.values()) for r in snapshot.queued_rolls)
        lines.append(f"# QueuedRolls: {rolls}")
    lines.append(f"# Round: {snapshot.round_number}")
    played = [pid.label for pid in BLOCK_ORDER if pid in snapshot.played]
    lines.append(f"# Played: {' '.join(played) if played else '-'}")
    if snapshot.result is not None:
        r = snapshot.result
        lines.append(f"# RoundResult: {r.winner.label} {r.win_type.value} {r.score}")
    if snapshot.pending_advantage is not None:
        a = snapshot.pending_advantage
        lines.append(f"# PendingAdvantage: {a.player.label} {a.square}")

    return "\n".join(lines) + "\n"


def serialize_state(
    round_: Round,
    tournament: Tournament,
    queued_rolls: list[DiceRoll] | tuple[DiceRoll, ...] = (),
) -> str:
    """capture() then serialize()."""
    return serialize(capture(round_, tournament, queued_rolls))


def deserialize(text: str) -> Snapshot:
    """
    Parse save-file text into a Snapshot.

    Raises CorruptSnapshot if a mandatory block or line is missing, or a
    board array has the wrong length or an entry that is neither 0 nor
    its own square number. Metadata lines are optional.
    """
    lines = [line.strip() for line in text.splitlines()]

    boards: dict[PlayerId, tuple[int, ...]] = {}
    scores: dict[PlayerId, int] = {}
    for pid in BLOCK_ORDER:
        squares_line, score_line = _find_block(lines, pid)
        boards[pid] = _parse_squares(squares_line, pid)
        scores[pid] = _parse_int(_after_colon(score_line), f"{pid.label} score")
        if scores[pid] < 0:
            raise CorruptSnapshot(f"{pid.label} score must not be negative")

    _check_boards(boards)

    first_turn = _parse_player(_after_colon(_find_line(lines, "First Turn:")), "First Turn")
    next_turn = _parse_player(_after_colon(_find_line(lines, "Next Turn:")), "Next Turn")

    meta = _parse_metadata(lines)
    phase = meta.get("phase", RoundPhase.AWAITING_ROLL)
    dice = meta.get("dice")
    result = meta.get("result")

    if phase is RoundPhase.AWAITING_MOVE and dice is None:
        raise CorruptSnapshot("Phase awaitingMove needs a CurrentDice line with values")
    if phase is RoundPhase.ROUND_OVER and result is None:
        raise CorruptSnapshot("Phase roundOver needs a RoundResult line")
    if result is not None:
        phase = RoundPhase.ROUND_OVER

    lock = meta.get("lock")
    if lock is not None and not 1 <= lock.square <= len(boards[PlayerId.HUMAN]):
        raise CorruptSnapshot(f"Advantage square {lock.square} is outside the board")
    if lock is not None and not lock.unlocked and boards[lock.holder][lock.square - 1] != 0:
        raise CorruptSnapshot(
            f"Locked advantage square {lock.square} is not covered on the {lock.holder.label} board"
        )

    return Snapshot(
        boards=boards,
        scores=scores,
        first_turn=first_turn,
        next_turn=next_turn,
        phase=phase,
        dice=dice if phase is not RoundPhase.ROUND_OVER else None,
        advantage_lock=lock,
        queued_rolls=tuple(meta.get("queued", ())),
        round_number=meta.get("round", 1),
        played=meta.get("played", frozenset(PlayerId)),
        result=result,
        pending_advantage=meta.get("pending_advantage"),
    )


# =============================================================================
# Parsing helpers
# =============================================================================

def _find_line(lines: list[str], prefix: str) -> str:
    for line in lines:
        if line.startswith(prefix):
            return line
    raise CorruptSnapshot(f'Cannot find line starting with "{prefix}"')


def _find_block(lines: list[str], pid: PlayerId) -> tuple[str, str]:
    header = f"{pid.label}:"
    try:
        start = lines.index(header)
    except ValueError:
        raise CorruptSnapshot(f'Missing "{header}" section') from None

    squares_line = score_line = None
    for line in lines[start + 1:]:
        if line.endswith(":") and not line.startswith(("Squares", "Score")):
            break  # next block header
        if line.startswith("First Turn:") or line.startswith("Next Turn:"):
            break
        if squares_line is None and line.startswith("Squares:"):
            squares_line = line
        elif score_line is None and line.startswith("Score:"):
            score_line = line

    if squares_line is None:
        raise CorruptSnapshot(f"Missing Squares line in {pid.label} section")
    if score_line is None:
        raise CorruptSnapshot(f"Missing Score line in {pid.label} section")
    return squares_line, score_line


def _after_colon(line: str) -> str:
    return line.split(":", 1)[1].strip()


def _parse_int(text: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise CorruptSnapshot(f"{what} is not a number: {text!r}") from None


def _parse_player(text: str, what: str) -> PlayerId:
    try:
        return PlayerId.from_label(text)
    except ValueError:
        raise CorruptSnapshot(f"{what}: unknown player {text!r}") from None


def _parse_squares(line: str, pid: PlayerId) -> tuple[int, ...]:
    tokens = _after_colon(line).split()
    if not tokens:
        raise CorruptSnapshot(f"{pid.label} squares line is empty")
    values = tuple(_parse_int(t, f"{pid.label} square") for t in tokens)
    for index, value in enumerate(values, start=1):
        if value != 0 and value != index:
            raise CorruptSnapshot(
                f"Invalid {pid.label} board entry at position {index}: expected {index} or 0, got {value}"
            )
    return values


def _check_boards(boards: dict[PlayerId, tuple[int, ...]]):
    sizes = {len(values) for values in boards.values()}
    if len(sizes) != 1:
        raise CorruptSnapshot(
            f"Board arrays differ in length: "
            + ", ".join(f"{pid.label}={len(v)}" for pid, v in boards.items())
        )
    try:
        validate_board_size(sizes.pop())
    except ConfigError as e:
        raise CorruptSnapshot(f"Bad board array length: {e}") from e


def _parse_dice_value(token: str) -> int | None:
    return None if token == "-" else _parse_int(token, "Die value")


def _parse_metadata(lines: list[str]) -> dict:
    meta: dict = {}
    for line in lines:
        if not line.startswith("#"):
            continue
        body = line[1:].strip()
        if ":" not in body:
            continue
        key, value = (part.strip() for part in body.split(":", 1))

        try:
            if key == "Phase":
                meta["phase"] = RoundPhase.parse(value)
            elif key == "CurrentDice":
                meta["dice"] = _parse_dice(value)
            elif key == "AdvantageLock":
                parts = value.split()
                if len(parts) != 3 or parts[2].lower() not in _UNLOCKED_FLAGS:
                    raise CorruptSnapshot(f"Bad AdvantageLock line: {line!r}")
                meta["lock"] = AdvantageLock(
                    holder=_parse_player(parts[0], "AdvantageLock"),
                    square=_parse_int(parts[1], "Advantage square"),
                    unlocked=_UNLOCKED_FLAGS[parts[2].lower()],
                )
            elif key == "QueuedRolls":
                meta["queued"] = [
                    DiceRoll.of([_parse_int(v.strip(), "Queued die") for v in entry.split(",")])
                    for entry in (e.strip() for e in value.split("|"))
                    if entry
                ]
            elif key == "Round":
                meta["round"] = _parse_int(value, "Round number")
            elif key == "Played":
                meta["played"] = frozenset(
                    _parse_player(label, "Played") for label in value.split() if label != "-"
                )
            elif key == "RoundResult":
                parts = value.split()
                if len(parts) != 3:
                    raise CorruptSnapshot(f"Bad RoundResult line: {line!r}")
                meta["result"] = RoundResult(
                    winner=_parse_player(parts[0], "RoundResult"),
                    win_type=WinType(parts[1].lower()),
                    score=_parse_int(parts[2], "Round score"),
                )
            elif key == "PendingAdvantage":
                parts = value.split()
                if len(parts) != 2:
                    raise CorruptSnapshot(f"Bad PendingAdvantage line: {line!r}")
                meta["pending_advantage"] = Advantage(
                    player=_parse_player(parts[0], "PendingAdvantage"),
                    square=_parse_int(parts[1], "Advantage square"),
                )
        except (ValueError, OutOfRange) as e:
            raise CorruptSnapshot(f"Bad metadata line {line!r}: {e}") from e
    return meta


def _parse_dice(value: str) -> DiceRoll | None:
    match = _DICE_RE.match(value)
    if not match:
        raise CorruptSnapshot(f"Bad CurrentDice value: {value!r}")
    d1 = _parse_dice_value(match.group(1))
    d2 = _parse_dice_value(match.group(2))
    if d1 is None:
        return None
    roll = DiceRoll(d1=d1, d2=d2)
    declared = match.group(3)
    if declared not in (None, "-") and _parse_int(declared, "Dice sum") != roll.total:
        raise CorruptSnapshot(f"CurrentDice sum does not match its values: {value!r}")
    return roll
