"""
Decision records and undo/redo history.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .formula import Literal

SENTINEL_LABEL = "κ"


@dataclass(frozen=True)
class Decision:
    """
    Assignment record for one variable.

    Attributes:
        variable: Variable name (SENTINEL_LABEL for the conflict node)
        positive: Assigned polarity
        level: Decision level
        implied: False for manual decisions, True for propagated ones
        antecedent: Id of the clause that forced the value (None when manual)
        parents: Negated co-members of the antecedent clause
        conflict: True only for the sentinel node
    """
    variable: str
    positive: bool
    level: int
    implied: bool = False
    antecedent: Optional[int] = None
    parents: Tuple[Literal, ...] = ()
    conflict: bool = False

    @property
    def literal(self) -> Literal:
        return Literal(self.variable, self.positive)

    @property
    def manual(self) -> bool:
        return not self.implied


@dataclass(frozen=True)
class Snapshot:
    """Copy of the assignment and decision map at one point in time."""
    assignment: Dict[str, bool] = field(default_factory=dict)
    decisions: Dict[str, Decision] = field(default_factory=dict)

    @classmethod
    def capture(cls, assignment: Dict[str, bool], decisions: Dict[str, Decision]) -> "Snapshot":
        # Decisions are frozen, so a shallow copy of each map is enough
        return cls(assignment=dict(assignment), decisions=dict(decisions))

    def restore(self) -> Tuple[Dict[str, bool], Dict[str, Decision]]:
        """Return fresh, mutable copies of the stored maps."""
        return dict(self.assignment), dict(self.decisions)


class History:
    """
    Undo/redo stacks of snapshots.

    push() records the state before a manual decision and discards the
    redo stack; undo() and redo() swap the current state with the top of
    the respective stack.
    """

    def __init__(self):
        self.undo_stack: List[Snapshot] = []
        self.redo_stack: List[Snapshot] = []

    def push(self, snapshot: Snapshot) -> None:
        """
        Record the state that a new manual decision is about to replace.

        Args:
            snapshot: State before the decision.
        """
        self.undo_stack.append(snapshot)
        self.redo_stack = []

    def undo(self, current: Snapshot) -> Optional[Snapshot]:
        """
        Step back one decision.

        Args:
            current: The state being left, kept for redo.

        Returns:
            The snapshot to restore, or None if there is nothing to undo.
        """
        if not self.undo_stack:
            return None
        previous = self.undo_stack.pop()
        self.redo_stack.append(current)
        return previous

    def redo(self, current: Snapshot) -> Optional[Snapshot]:
        """
        Replay one undone decision.

        Args:
            current: The state being left, kept for undo.

        Returns:
            The snapshot to restore, or None if there is nothing to redo.
        """
        if not self.redo_stack:
            return None
        following = self.redo_stack.pop()
        self.undo_stack.append(current)
        return following

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def depth(self) -> int:
        """Number of undoable steps."""
        return len(self.undo_stack)

    def clear(self) -> None:
        """Drop both stacks."""
        self.undo_stack = []
        self.redo_stack = []

    def __repr__(self) -> str:
        return f"History(undo={len(self.undo_stack)}, redo={len(self.redo_stack)})"
