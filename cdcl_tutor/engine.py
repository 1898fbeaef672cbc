"""
Interactive CDCL engine.

The engine never searches on its own. An external actor submits a formula
and supplies decisions one at a time; after every operation the engine
re-runs unit propagation, conflict detection and the satisfaction check,
and exposes the resulting state through read-only properties.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .conflict import ConflictGraphs, build_conflict_graphs, find_conflict
from .format import fmt_formula, fmt_satisfying_assignment
from .formula import Clause, Literal, extract_variables, parse_formula
from .graph import ImplicationGraph, Node, find_grandparents, find_uip_candidates
from .history import SENTINEL_LABEL, Decision, History, Snapshot
from .learning import ConflictAnalysis, Heuristic, learn_clause
from .propagation import Implication, find_implications
from .satisfaction import clause_satisfied, is_satisfied

logger = logging.getLogger(__name__)


class EngineStatus(Enum):
    """Observable state of the loaded formula."""
    UNRESOLVED = "unresolved"
    CONFLICT = "conflict"
    UNSAT = "unsat"
    SATISFIED = "satisfied"


class Engine:
    """
    Step-wise CDCL engine.

    State owned by the engine:
    - clauses: input clauses followed by committed learned clauses
    - assignment: variable -> bool, one entry per decided variable
    - decisions: variable -> Decision, in assignment order
    - current_level: level the next manual decision will get
    - history: undo/redo snapshots of (assignment, decisions)
    - heuristic: clause-learning heuristic used on conflicts

    Operations: submit_formula, decide, undo, redo, reset,
    commit_learned_clause, set_heuristic.
    """

    def __init__(self, heuristic: Union[str, Heuristic] = Heuristic.UIP):
        self._heuristic = Heuristic.parse(heuristic)
        self._history = History()
        self._clear_formula()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def submit_formula(self, text: str) -> None:
        """Reset everything, then load the clauses and variables of `text`."""
        self._clear_formula()
        self._formula_text = text
        self._clauses = parse_formula(text)
        self._variables = extract_variables(self._clauses)
        logger.info(
            "Loaded formula with %d clauses over %d variables",
            len(self._clauses), len(self._variables),
        )
        self._run_pipeline()

    def decide(self, variable: str, polarity: bool = True) -> None:
        """
        Record a manual decision at the current level.

        The engine does not refuse decisions in conflict, UNSAT or satisfied
        states; gating is up to the caller.
        """
        polarity = bool(polarity)
        self._history.push(self._capture())
        self._decisions[variable] = Decision(
            variable=variable,
            positive=polarity,
            level=self._current_level,
        )
        self._assignment[variable] = polarity
        logger.info("Decide %s at level %d", Literal(variable, polarity).label, self._current_level)
        self._current_level += 1
        self._run_pipeline()

    def undo(self) -> bool:
        """Step back one manual decision. Returns False if there was nothing to undo."""
        snapshot = self._history.undo(self._capture())
        if snapshot is None:
            return False
        self._assignment, self._decisions = snapshot.restore()
        self._current_level -= 1
        self._clear_unsat()
        logger.info("Undo to level %d", self._current_level)
        self._run_pipeline()
        return True

    def redo(self) -> bool:
        """Replay one undone decision. Returns False if there was nothing to redo."""
        snapshot = self._history.redo(self._capture())
        if snapshot is None:
            return False
        self._assignment, self._decisions = snapshot.restore()
        self._current_level += 1
        self._clear_unsat()
        logger.info("Redo to level %d", self._current_level)
        self._run_pipeline()
        return True

    def reset(self) -> None:
        """Drop the formula and all state. The heuristic is kept."""
        self._clear_formula()
        logger.info("Engine reset")
        self._run_pipeline()

    def commit_learned_clause(self) -> bool:
        """
        Append the pending learned clause and restart from an empty assignment.

        Returns False (and changes nothing) when there is no pending clause
        or the pending clause is empty.
        """
        clause = self._learned_clause
        if clause is None or not len(clause):
            logger.warning("No learned clause to commit")
            return False
        self._clauses.append(clause)
        logger.info("Committed learned clause c%d with %d literals", clause.id, len(clause))
        self._clear_assignment()
        self._run_pipeline()
        return True

    def set_heuristic(self, heuristic: Union[str, Heuristic]) -> None:
        """Select the clause-learning heuristic ('uip' or 'neg')."""
        self._heuristic = Heuristic.parse(heuristic)
        logger.info("Clause learning heuristic: %s", self._heuristic.value)
        self._run_pipeline()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run_pipeline(self) -> None:
        """Propagation, then conflict detection, then the satisfaction check."""
        self._propagate()
        self._clear_analysis()
        if self._unsat:
            return
        self._sentinel = None
        self._detect_conflict()
        self._check_satisfaction()

    def _propagate(self) -> None:
        """Repeat propagation passes until a pass forces nothing."""
        passes = 0
        while True:
            implications = find_implications(self._clauses, self._assignment, self._decisions)
            if not implications:
                break
            passes += 1
            for implication in implications:
                self._apply(implication)

        if passes:
            logger.debug("Propagation reached a fixed point after %d passes", passes)

        if not self._unsat:
            # Restored snapshots may already hold level-0 implications
            for decision in self._decisions.values():
                if decision.level == 0:
                    self._flag_unsat(decision.literal, decision.antecedent)
                    break

    def _apply(self, implication: Implication) -> None:
        self._assignment[implication.variable] = implication.literal.positive
        self._decisions[implication.variable] = implication.to_decision()
        if implication.level == 0 and not self._unsat:
            self._flag_unsat(implication.literal, implication.antecedent)

    def _flag_unsat(self, literal: Literal, antecedent: Optional[int]) -> None:
        self._unsat = True
        self._sentinel = Decision(
            variable=SENTINEL_LABEL,
            positive=True,
            level=0,
            implied=True,
            antecedent=antecedent,
            parents=(literal,),
            conflict=True,
        )
        logger.info("Formula is UNSAT: %s is forced at level 0", literal.label)

    def _detect_conflict(self) -> None:
        clause = find_conflict(self._clauses, self._assignment)
        if clause is None:
            return

        graphs = build_conflict_graphs(clause, self._decisions, self._current_level)
        uip_candidates = find_uip_candidates(graphs.level_graph)
        grandparents = find_grandparents(graphs.full_graph, uip_candidates)
        analysis = ConflictAnalysis(
            uip_candidates=uip_candidates,
            grandparents=grandparents,
            decisions=dict(self._decisions),
        )
        literals = learn_clause(self._heuristic, analysis)

        self._conflict = graphs
        self._sentinel = graphs.sentinel
        self._uip_candidates = uip_candidates
        self._grandparents = grandparents
        self._learned_clause = Clause(
            id=len(self._clauses) + 1,
            literals=tuple(literals),
            learned=True,
        )
        logger.info(
            "Conflict on clause c%d; UIP candidates [%s]; learned (%s)",
            clause.id,
            ", ".join(node.label for node in uip_candidates),
            ",".join(lit.label for lit in literals),
        )

    def _check_satisfaction(self) -> None:
        if self._conflict is not None:
            return
        if is_satisfied(self._clauses, self._decisions):
            self._satisfying_assignment = fmt_satisfying_assignment(self._decisions)
            logger.info("Formula satisfied by %s", self._satisfying_assignment)

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _capture(self) -> Snapshot:
        return Snapshot.capture(self._assignment, self._decisions)

    def _clear_formula(self) -> None:
        self._formula_text = ""
        self._clauses: List[Clause] = []
        self._variables: List[str] = []
        self._clear_assignment()

    def _clear_assignment(self) -> None:
        self._assignment: Dict[str, bool] = {}
        self._decisions: Dict[str, Decision] = {}
        self._current_level = 1
        self._history.clear()
        self._clear_unsat()
        self._clear_analysis()

    def _clear_unsat(self) -> None:
        self._unsat = False
        self._sentinel: Optional[Decision] = None

    def _clear_analysis(self) -> None:
        self._conflict: Optional[ConflictGraphs] = None
        self._uip_candidates: List[Literal] = []
        self._grandparents: List[Node] = []
        self._learned_clause: Optional[Clause] = None
        self._satisfying_assignment: Optional[str] = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def formula_text(self) -> str:
        return self._formula_text

    @property
    def clauses(self) -> List[Clause]:
        return list(self._clauses)

    @property
    def variables(self) -> List[str]:
        return list(self._variables)

    @property
    def assignment(self) -> Dict[str, bool]:
        return dict(self._assignment)

    @property
    def decisions(self) -> Dict[str, Decision]:
        return dict(self._decisions)

    @property
    def current_level(self) -> int:
        return self._current_level

    @property
    def heuristic(self) -> Heuristic:
        return self._heuristic

    @property
    def unsat(self) -> bool:
        return self._unsat

    @property
    def conflict(self) -> bool:
        return self._conflict is not None

    @property
    def conflict_clause(self) -> Optional[Clause]:
        return self._conflict.clause if self._conflict else None

    @property
    def sentinel(self) -> Optional[Decision]:
        return self._sentinel

    @property
    def level_graph(self) -> Optional[ImplicationGraph]:
        return self._conflict.level_graph if self._conflict else None

    @property
    def full_graph(self) -> Optional[ImplicationGraph]:
        return self._conflict.full_graph if self._conflict else None

    @property
    def uip_candidates(self) -> List[Literal]:
        return list(self._uip_candidates)

    @property
    def grandparents(self) -> List[Node]:
        return list(self._grandparents)

    @property
    def learned_clause(self) -> Optional[Clause]:
        return self._learned_clause

    @property
    def satisfying_assignment(self) -> Optional[str]:
        return self._satisfying_assignment

    @property
    def status(self) -> EngineStatus:
        if self._unsat:
            return EngineStatus.UNSAT
        if self._conflict is not None:
            return EngineStatus.CONFLICT
        if self._satisfying_assignment is not None:
            return EngineStatus.SATISFIED
        return EngineStatus.UNRESOLVED

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo()

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo()

    def clause_satisfied(self, clause: Clause) -> bool:
        """Display status of a clause under the current decisions."""
        return clause_satisfied(clause, self._decisions)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the observable state."""
        return {
            "formula": fmt_formula(self._clauses),
            "clauses": [
                {
                    "id": clause.id,
                    "literals": [lit.label for lit in clause],
                    "learned": clause.learned,
                    "satisfied": self.clause_satisfied(clause),
                }
                for clause in self._clauses
            ],
            "decisions": {var: decision_to_dict(d) for var, d in self._decisions.items()},
            "current_level": self._current_level,
            "heuristic": self._heuristic.value,
            "status": self.status.value,
            "unsat": self._unsat,
            "conflict": self.conflict,
            "conflict_clause": self.conflict_clause.id if self._conflict else None,
            "sentinel": decision_to_dict(self._sentinel) if self._sentinel else None,
            "level_graph": self.level_graph.to_dict() if self._conflict else None,
            "full_graph": self.full_graph.to_dict() if self._conflict else None,
            "uip_candidates": [node.label for node in self._uip_candidates],
            "learned_clause": (
                [lit.label for lit in self._learned_clause] if self._learned_clause is not None else None
            ),
            "satisfying_assignment": self._satisfying_assignment,
        }

    def __repr__(self) -> str:
        return (
            f"Engine(clauses={len(self._clauses)}, decisions={len(self._decisions)}, "
            f"level={self._current_level}, status={self.status.value})"
        )


def decision_to_dict(decision: Decision) -> Dict[str, Any]:
    return {
        "positive": decision.positive,
        "level": decision.level,
        "implied": decision.implied,
        "antecedent": decision.antecedent,
        "parents": [lit.label for lit in decision.parents],
        "conflict": decision.conflict,
    }
