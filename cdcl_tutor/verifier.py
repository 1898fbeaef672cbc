"""
Invariant verification for engine states.

Checks that an engine snapshot is internally consistent: the assignment
mirrors the decisions, levels follow the decision discipline, and learned
clauses have the shape their heuristic promises.
"""

from typing import List

from .learning import Heuristic
from .propagation import implication_level


class EngineVerifier:
    """
    Verifies the observable state of an Engine.

    The implied-level check assumes decisions are only made on unassigned
    variables; re-deciding an assigned variable legitimately breaks it.
    """

    def __init__(self, engine):
        self.engine = engine
        self.problems: List[str] = []

    def verify(self) -> bool:
        """
        Run every check.

        Returns True if the state is consistent, False otherwise. The
        individual findings are left in self.problems.
        """
        self.problems = []
        self._check_assignment()
        self._check_levels()
        self._check_implied()
        self._check_learned_clause()
        self._check_sentinel()
        return not self.problems

    def _check_assignment(self) -> None:
        assignment = self.engine.assignment
        decisions = self.engine.decisions
        if list(assignment) != list(decisions):
            self.problems.append(
                f"Assignment keys {list(assignment)} differ from decisions {list(decisions)}"
            )
        for var, decision in decisions.items():
            if assignment.get(var) != decision.positive:
                self.problems.append(f"{var}: assignment disagrees with decision polarity")

    def _check_levels(self) -> None:
        manual = [d for d in self.engine.decisions.values() if d.manual]
        levels = [d.level for d in manual]
        if len(set(levels)) != len(levels):
            self.problems.append(f"Duplicate manual levels: {levels}")
        if any(level < 1 or level >= self.engine.current_level for level in levels):
            self.problems.append(
                f"Manual levels {levels} outside [1, {self.engine.current_level - 1}]"
            )
        if self.engine.current_level != 1 + len(manual):
            self.problems.append(
                f"Current level {self.engine.current_level} != 1 + {len(manual)} manual decisions"
            )

    def _check_implied(self) -> None:
        decisions = self.engine.decisions
        clauses = {clause.id: clause for clause in self.engine.clauses}
        for var, decision in decisions.items():
            if not decision.implied:
                continue
            clause = clauses.get(decision.antecedent)
            if clause is None:
                self.problems.append(f"{var}: antecedent c{decision.antecedent} does not exist")
                continue
            if decision.literal not in clause.literals:
                self.problems.append(f"{var}: not a literal of its antecedent c{clause.id}")
                continue
            expected = implication_level(clause, decision.literal, decisions)
            if decision.level != expected:
                self.problems.append(
                    f"{var}: implied at level {decision.level}, antecedent gives {expected}"
                )

    def _check_learned_clause(self) -> None:
        learned = self.engine.learned_clause
        if learned is None:
            return
        if self.engine.heuristic == Heuristic.NEG:
            manual = sum(1 for d in self.engine.decisions.values() if d.manual)
            if len(learned) != manual:
                self.problems.append(
                    f"neg learned clause has {len(learned)} literals for {manual} manual decisions"
                )
        elif len(learned) > 2:
            self.problems.append(f"uip learned clause has {len(learned)} literals")
        if learned.id != len(self.engine.clauses) + 1 or not learned.learned:
            self.problems.append(f"Pending clause c{learned.id} is not the next learned clause")

    def _check_sentinel(self) -> None:
        active = self.engine.conflict or self.engine.unsat
        sentinel = self.engine.sentinel
        if active != (sentinel is not None):
            self.problems.append("Sentinel presence does not match conflict/unsat state")
        if sentinel is not None and not sentinel.conflict:
            self.problems.append("Sentinel is not flagged as a conflict node")


def verify_engine_state(engine) -> bool:
    """
    Verify an Engine instance.

    Args:
        engine: Engine after any sequence of operations.

    Returns:
        True if the state is consistent, False otherwise.
    """
    return EngineVerifier(engine).verify()
