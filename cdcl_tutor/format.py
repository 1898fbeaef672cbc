"""
Text formatting for formulas, decisions and implication graphs.

Literals print as 'A' / '-A', clauses as '(A,-B)' so that formatted
formulas can be parsed back by parse_formula().
"""

from typing import Dict, Iterable, List, Optional, Sequence

from .formula import Clause, Literal
from .graph import ImplicationGraph, Node, node_label
from .history import Decision

AND = " ∧ "


def fmt_lit(lit: Literal) -> str:
    """Format literal: Literal('A', False) -> '-A'"""
    return lit.label


def fmt_lit_list(lits: Iterable[Node]) -> str:
    """Format list of literals: [A, -B] -> 'A, -B'"""
    return ', '.join(node_label(lit) for lit in lits)


def fmt_clause(clause: Clause, with_id: bool = False) -> str:
    """
    Format clause: (A,-B)
    With id: 'c3: (A,-B)', learned clauses are marked with '*'.
    """
    result = f"({','.join(fmt_lit(lit) for lit in clause)})"
    if with_id:
        marker = "*" if clause.learned else ""
        result = f"c{clause.id}{marker}: {result}"
    return result


def fmt_formula(clauses: Sequence[Clause]) -> str:
    """Formula text: '(A,B)(-A,C)'"""
    return ''.join(fmt_clause(clause) for clause in clauses)


def fmt_decision(decision: Decision) -> str:
    """
    Format one decision record.

    Manual: 'A = True @1'
    Implied: 'C = True @1 <- c2 [A]'
    """
    name = decision.variable
    if decision.conflict:
        result = f"{name} @{decision.level}"
    else:
        result = f"{name} = {decision.positive} @{decision.level}"
    if decision.antecedent is not None:
        result += f" <- c{decision.antecedent}"
    if decision.implied:
        result += f" [{fmt_lit_list(decision.parents)}]"
    return result


def fmt_decisions(decisions: Dict[str, Decision]) -> str:
    if not decisions:
        return ''
    return '\n'.join(fmt_decision(d) for d in decisions.values())


def fmt_graph(graph: Optional[ImplicationGraph]) -> str:
    """One 'node <- parents' line per node."""
    if graph is None or not len(graph):
        return ''
    lines = []
    for node, parents in graph.to_dict().items():
        lines.append(f"{node} <- [{', '.join(parents)}]")
    return '\n'.join(lines)


def fmt_satisfying_assignment(decisions: Dict[str, Decision]) -> str:
    """(A ∧ C ∧ -B), one token per decision in decision order."""
    tokens: List[str] = [d.literal.label for d in decisions.values() if not d.conflict]
    return f"({AND.join(tokens)})"
