"""
Conflict detection and implication-graph construction.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .formula import Clause, Literal
from .graph import SENTINEL, ImplicationGraph
from .history import SENTINEL_LABEL, Decision

logger = logging.getLogger(__name__)


@dataclass
class ConflictGraphs:
    """
    Result of analysing an active conflict.

    Attributes:
        clause: The falsified clause
        sentinel: Decision record for the conflict node
        level_graph: Graph restricted to the highest decision level, plus the sentinel
        full_graph: Graph over all decisions, plus the sentinel
        highest_level: Highest decision level among current decisions
    """
    clause: Clause
    sentinel: Decision
    level_graph: ImplicationGraph
    full_graph: ImplicationGraph
    highest_level: int


def is_conflicting(clause: Clause, assignment: Dict[str, bool]) -> bool:
    """True iff every literal is assigned and false."""
    return len(clause) > 0 and all(lit.value(assignment) is False for lit in clause)


def find_conflict(clauses: Sequence[Clause], assignment: Dict[str, bool]) -> Optional[Clause]:
    """The first falsified clause in id order, if any."""
    for clause in clauses:
        if is_conflicting(clause, assignment):
            return clause
    return None


def sentinel_parents(clause: Clause, level_nodes: Sequence[Literal]) -> List[Literal]:
    """Level nodes whose negation appears in the conflicting clause."""
    negated = {lit.negate() for lit in clause}
    return [node for node in level_nodes if node in negated]


def build_conflict_graphs(
    clause: Clause,
    decisions: Dict[str, Decision],
    current_level: int,
) -> ConflictGraphs:
    """
    Build the level-restricted and full implication graphs for a conflict.

    Args:
        clause: The conflicting clause.
        decisions: Current decision map (variable -> Decision).
        current_level: The engine's next manual decision level.
    """
    highest_level = max((d.level for d in decisions.values()), default=0)
    level_nodes = [d.literal for d in decisions.values() if d.level == highest_level]

    level_graph = ImplicationGraph()
    for decision in decisions.values():
        if decision.level != highest_level:
            continue
        level_graph.add(
            decision.literal,
            [parent for parent in decision.parents if parent in level_nodes],
        )

    kappa_parents = sentinel_parents(clause, level_nodes)
    sentinel = Decision(
        variable=SENTINEL_LABEL,
        positive=True,
        level=current_level - 1,
        implied=True,
        antecedent=clause.id,
        parents=tuple(kappa_parents),
        conflict=True,
    )
    level_graph.add(SENTINEL, kappa_parents)

    full_graph = ImplicationGraph()
    for decision in decisions.values():
        full_graph.add(decision.literal, decision.parents)
    full_graph.add(SENTINEL, kappa_parents)

    logger.debug(
        "Conflict on clause %d at level %d: sentinel parents %s",
        clause.id, highest_level, [p.label for p in kappa_parents],
    )
    return ConflictGraphs(
        clause=clause,
        sentinel=sentinel,
        level_graph=level_graph,
        full_graph=full_graph,
        highest_level=highest_level,
    )
