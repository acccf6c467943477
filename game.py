"""
Guess validation and reveal for a generated board.

A board entry only ever moves from unlocked to locked, and the game is won
exactly when every entry is locked. The group an entry belongs to stays
hidden from views until its group is claimed or the board is revealed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from catalog import artwork_sources
from models import Board, ItemRecord, RuleKind, GROUP_SIZE

logger = logging.getLogger(__name__)


class InvalidSelection(ValueError):
    """Base class for rejected player input."""


class InvalidSelectionSize(InvalidSelection):
    """A guess did not name exactly one group's worth of distinct items."""


class SelectionFull(InvalidSelection):
    """A further item was selected while the selection was already full."""


class EntryLocked(InvalidSelection):
    """A guess included an item whose group was already claimed."""


class UnknownItem(InvalidSelection):
    """A guess named an item that is not on the board."""


class GuessResult(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class GameStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    WON = "won"


@dataclass
class BoardEntry:
    position: int
    identifier: str
    record: Optional[ItemRecord]
    group_index: int = field(repr=False)
    locked: bool = False


@dataclass(frozen=True)
class EntryView:
    """What the presentation layer may see of one board position."""
    position: int
    identifier: str
    locked: bool
    selected: bool
    categories: Tuple[str, ...]
    artwork: Tuple[str, ...]
    group_index: Optional[int] = None

    @property
    def label(self) -> str:
        return self.identifier.replace("-", " ")


@dataclass(frozen=True)
class GuessRecord:
    identifiers: Tuple[str, ...]
    result: GuessResult
    group_index: Optional[int] = None

    def describe(self) -> str:
        if self.result is GuessResult.CORRECT:
            return f"Group {self.group_index + 1}: Correct"
        return f"Incorrect group: {', '.join(self.identifiers)}"


@dataclass(frozen=True)
class RevealedGroup:
    index: int
    members: Tuple[str, ...]
    positions: Tuple[int, ...]
    description: str
    rule: RuleKind
    reason: str


def infer_description(records: Sequence[Optional[ItemRecord]]) -> str:
    """
    Best-effort description of what a set of items has in common.

    Checks primary category, then era, then rarity, then lineage. An item
    without metadata shares nothing, so any missing record gives the generic
    description. The result may differ from the rule the group was built with.
    """
    if not records or any(r is None for r in records):
        return "A shared connection"
    known = list(records)

    category = known[0].primary_category
    if category and all(r.primary_category == category for r in known):
        return f"All are {category} type"

    era = known[0].era
    if era and all(r.era == era for r in known):
        return f"All from {era.replace('-', ' ')}"

    if all(r.rare for r in known):
        return "All legendary"

    lineage = known[0].lineage
    if lineage and all(r.lineage == lineage for r in known):
        return "Same evolution family"

    return "A shared connection"


class GameState:
    """The shuffled board, its hidden partition and the player's progress."""

    def __init__(self, board: Board, order: Sequence[str], records: Optional[Dict[str, Optional[ItemRecord]]] = None):
        """
        Args:
            board: The hidden solution
            order: Board identifiers in display order, a permutation of the board
            records: Display metadata per identifier; missing or None is allowed
        """
        if sorted(order) != sorted(board.identifiers):
            raise ValueError("Board order must be a permutation of the board's items")

        records = records or {}
        self.board = board
        self.entries = [
            BoardEntry(position=i, identifier=identifier, record=records.get(identifier),
                       group_index=board.group_index(identifier))
            for i, identifier in enumerate(order)
        ]
        self._by_id = {e.identifier: e for e in self.entries}
        self.selection: List[int] = []
        self.history: List[GuessRecord] = []
        self.revealed = False

    @property
    def status(self) -> GameStatus:
        if all(e.locked for e in self.entries):
            return GameStatus.WON
        return GameStatus.IN_PROGRESS

    @property
    def mistakes(self) -> int:
        return sum(1 for g in self.history if g.result is GuessResult.INCORRECT)

    @property
    def selected_identifiers(self) -> List[str]:
        return [self.entries[p].identifier for p in self.selection]

    def view(self) -> List[EntryView]:
        views = []
        for e in self.entries:
            visible = e.locked or self.revealed
            views.append(EntryView(
                position=e.position,
                identifier=e.identifier,
                locked=e.locked,
                selected=e.position in self.selection,
                categories=tuple(e.record.categories) if e.record else (),
                artwork=tuple(artwork_sources(e.identifier, e.record.catalog_id if e.record else None)),
                group_index=e.group_index if visible else None,
            ))
        return views

    def toggle_select(self, position: int) -> bool:
        """
        Toggle one position in or out of the selection.

        Returns:
            True if the position is selected afterwards

        Raises:
            IndexError: no such position
            SelectionFull: the selection already holds a full group
        """
        if not 0 <= position < len(self.entries):
            raise IndexError(f"No board position {position}")

        entry = self.entries[position]
        if entry.locked:
            return False
        if position in self.selection:
            self.selection.remove(position)
            return False
        if len(self.selection) >= GROUP_SIZE:
            raise SelectionFull(f"You can select up to {GROUP_SIZE} items per group.")
        self.selection.append(position)
        return True

    def clear_selection(self):
        self.selection = []

    def submit_guess(self, identifiers: Optional[Iterable[str]] = None) -> GuessResult:
        """
        Check a guess against the hidden partition.

        A correct guess locks its items. An incorrect guess changes nothing
        but the history, so the same items can be guessed again.

        Args:
            identifiers: Items to guess; defaults to the current selection

        Raises:
            InvalidSelectionSize: not exactly GROUP_SIZE distinct items
            UnknownItem: an item is not on this board
            EntryLocked: an item was already claimed
        """
        if identifiers is None:
            guess = self.selected_identifiers
        else:
            guess = [i.strip().lower() for i in identifiers]

        if len(guess) != GROUP_SIZE or len(set(guess)) != GROUP_SIZE:
            raise InvalidSelectionSize(f"Select exactly {GROUP_SIZE} items to lock as a group.")

        entries = []
        for identifier in guess:
            entry = self._by_id.get(identifier)
            if entry is None:
                raise UnknownItem(f"{identifier} is not on this board")
            if entry.locked:
                raise EntryLocked(f"{identifier} is already in a claimed group")
            entries.append(entry)

        group_indices = {e.group_index for e in entries}
        if len(group_indices) == 1:
            index = group_indices.pop()
            for e in entries:
                e.locked = True
            self.history.append(GuessRecord(tuple(guess), GuessResult.CORRECT, index))
            self.selection = []
            logger.info(f"Group {index + 1} claimed, status {self.status.value}")
            return GuessResult.CORRECT

        self.history.append(GuessRecord(tuple(guess), GuessResult.INCORRECT))
        return GuessResult.INCORRECT

    def reveal(self) -> List[RevealedGroup]:
        """Expose every group with a description of its shared trait."""
        self.revealed = True
        revealed = []
        for index, group in enumerate(self.board.groups):
            entries = [e for e in self.entries if e.group_index == index]
            revealed.append(RevealedGroup(
                index=index,
                members=tuple(e.identifier for e in entries),
                positions=tuple(e.position for e in entries),
                description=infer_description([e.record for e in entries]),
                rule=group.rule,
                reason=group.reason,
            ))
        return revealed
