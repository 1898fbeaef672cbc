"""
Unit propagation.

A pass scans the clauses once and collects the implications that are forced
by the current assignment. Applying them is left to the engine, which
re-runs passes until nothing new is forced.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .formula import Clause, Literal
from .history import Decision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Implication:
    """An assignment forced by a unit clause."""
    literal: Literal
    level: int
    antecedent: int
    parents: Tuple[Literal, ...]

    @property
    def variable(self) -> str:
        return self.literal.variable

    def to_decision(self) -> Decision:
        return Decision(
            variable=self.literal.variable,
            positive=self.literal.positive,
            level=self.level,
            implied=True,
            antecedent=self.antecedent,
            parents=self.parents,
        )


def evaluate_clause(clause: Clause, assignment: Dict[str, bool]) -> Tuple[bool, List[Literal]]:
    """
    Evaluate a clause under the current assignment.

    Returns:
        (satisfied, unassigned literals). The unassigned list is only
        complete when the clause is not satisfied.
    """
    unassigned = []
    for lit in clause:
        value = lit.value(assignment)
        if value is None:
            unassigned.append(lit)
        elif value:
            return True, []
    return False, unassigned


def antecedent_parents(clause: Clause, pivot: Literal) -> Tuple[Literal, ...]:
    """The clause's other literals with flipped polarity."""
    return tuple(lit.negate() for lit in clause if lit.variable != pivot.variable)


def implication_level(clause: Clause, pivot: Literal, decisions: Dict[str, Decision]) -> int:
    """Highest decision level among the clause's other assigned literals, 0 if none."""
    levels = [
        decisions[lit.variable].level for lit in clause
        if lit.variable != pivot.variable and lit.variable in decisions
    ]
    return max(levels, default=0)


def unit_literal(clause: Clause, assignment: Dict[str, bool]) -> Optional[Literal]:
    """The single unassigned literal of an unsatisfied clause, if there is exactly one."""
    satisfied, unassigned = evaluate_clause(clause, assignment)
    if satisfied or len(unassigned) != 1:
        return None
    return unassigned[0]


def find_implications(
    clauses: Sequence[Clause],
    assignment: Dict[str, bool],
    decisions: Dict[str, Decision],
) -> List[Implication]:
    """
    One forward propagation pass over the clauses, in id order.

    A variable is queued at most once per pass; a later clause forcing the
    same variable (with either polarity) is ignored.
    """
    implications = []
    queued = set()

    for clause in clauses:
        pivot = unit_literal(clause, assignment)
        if pivot is None or pivot.variable in queued:
            continue
        queued.add(pivot.variable)
        implication = Implication(
            literal=pivot,
            level=implication_level(clause, pivot, decisions),
            antecedent=clause.id,
            parents=antecedent_parents(clause, pivot),
        )
        logger.debug("Clause %d forces %s at level %d", clause.id, pivot.label, implication.level)
        implications.append(implication)

    return implications
