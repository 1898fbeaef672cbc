"""
Clause learning heuristics.

uip: negate the grandparent of the conflict node and the first UIP.
neg: negate every manual decision.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Union

from .errors import UnknownHeuristicError
from .formula import Literal
from .graph import Node, Sentinel
from .history import Decision


class Heuristic(str, Enum):
    UIP = "uip"
    NEG = "neg"

    @classmethod
    def parse(cls, value: Union[str, "Heuristic"]) -> "Heuristic":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownHeuristicError(str(value), [h.value for h in cls]) from None


@dataclass
class ConflictAnalysis:
    """Inputs shared by the learning heuristics."""
    uip_candidates: List[Literal] = field(default_factory=list)
    grandparents: List[Node] = field(default_factory=list)
    decisions: Dict[str, Decision] = field(default_factory=dict)

    @property
    def first_uip(self):
        return self.uip_candidates[-1] if self.uip_candidates else None

    @property
    def grandparent(self):
        return self.grandparents[0] if self.grandparents else None


def learn_from_uip(analysis: ConflictAnalysis) -> List[Literal]:
    """[-grandparent] + [-first UIP], each only when present."""
    learned = []
    for node in (analysis.grandparent, analysis.first_uip):
        if node is None or isinstance(node, Sentinel):
            continue
        learned.append(node.negate())
    return learned


def learn_from_decisions(analysis: ConflictAnalysis) -> List[Literal]:
    """Negation of every manual decision, in decision order."""
    return [d.literal.negate() for d in analysis.decisions.values() if d.manual]


LEARNERS: Dict[Heuristic, Callable[[ConflictAnalysis], List[Literal]]] = {
    Heuristic.UIP: learn_from_uip,
    Heuristic.NEG: learn_from_decisions,
}


def learn_clause(heuristic: Heuristic, analysis: ConflictAnalysis) -> List[Literal]:
    return LEARNERS[Heuristic.parse(heuristic)](analysis)
