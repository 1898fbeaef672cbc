"""
Satisfaction check against the current decisions.
"""

from typing import Dict, Sequence

from .formula import Clause
from .history import Decision


def clause_satisfied(clause: Clause, decisions: Dict[str, Decision]) -> bool:
    """True if some literal's variable is decided with the literal's polarity."""
    for lit in clause:
        decision = decisions.get(lit.variable)
        if decision is not None and decision.positive == lit.positive:
            return True
    return False


def is_satisfied(clauses: Sequence[Clause], decisions: Dict[str, Decision]) -> bool:
    """True iff there is at least one clause and every clause is satisfied."""
    if not clauses:
        return False
    return all(clause_satisfied(clause, decisions) for clause in clauses)
