"""
Formula store: literals, clauses and the formula text format.

Formulas are written as parenthesized, comma-separated literal groups,
e.g. ``(A,B)(-A,C)(-B,-C)``. A leading ``-`` negates a literal.
"""

import random
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

NEGATION = "-"

CLAUSE_PATTERN = re.compile(r"\((.*?)\)")

# Clauses per variable at the 3-SAT phase transition
PHASE_TRANSITION_RATIO = 4.26


@dataclass(frozen=True)
class Literal:
    """A variable with a polarity."""
    variable: str
    positive: bool = True

    def negate(self) -> "Literal":
        return Literal(self.variable, not self.positive)

    @property
    def label(self) -> str:
        return self.variable if self.positive else f"{NEGATION}{self.variable}"

    def value(self, assignment: Dict[str, bool]) -> Optional[bool]:
        """
        Evaluate under a (partial) assignment.

        Returns None when the variable is unassigned.
        """
        if self.variable not in assignment:
            return None
        return assignment[self.variable] == self.positive

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Clause:
    """Disjunction of literals with its 1-based id."""
    id: int
    literals: Tuple[Literal, ...]
    learned: bool = False

    def __iter__(self):
        return iter(self.literals)

    def __len__(self) -> int:
        return len(self.literals)

    @property
    def variables(self) -> List[str]:
        return [lit.variable for lit in self.literals]


def parse_literal(token: str) -> Optional[Literal]:
    """Parse '-x' / 'x'. Returns None for an empty token."""
    token = token.strip()
    positive = not token.startswith(NEGATION)
    variable = token[len(NEGATION):].strip() if not positive else token
    if not variable:
        return None
    return Literal(variable, positive)


def parse_formula(text: str) -> List[Clause]:
    """
    Parse formula text into clauses.

    Every ``( ... )`` group becomes a clause numbered by its position.
    Malformed input never raises: whatever cannot be read is skipped, so
    garbage yields an empty list.
    """
    clauses = []
    for match in CLAUSE_PATTERN.finditer(text or ""):
        literals = [parse_literal(tok) for tok in match.group(1).split(",")]
        literals = tuple(lit for lit in literals if lit is not None)
        if not literals:
            continue
        clauses.append(Clause(id=len(clauses) + 1, literals=literals))
    return clauses


def extract_variables(clauses: Iterable[Clause]) -> List[str]:
    """Variable names in first-seen order."""
    seen = {}
    for clause in clauses:
        for lit in clause:
            seen.setdefault(lit.variable, None)
    return list(seen)


def generate_random_formula(
    n_vars: int,
    clause_length: int = 3,
    variance: float = 0.1,
    n_clauses: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Generate a random k-SAT formula near the phase transition.

    Args:
        n_vars: Number of variables (named x1..xn).
        clause_length: Number of literals per clause.
        variance: Relative spread of the clause count (0.1 = +/-10%).
        n_clauses: Fixed number of clauses. If None, uses the phase transition estimate.
        rng: Random generator, defaults to the module-level one.

    Returns:
        Formula text, e.g. '(x1,-x3,x2)(-x2,x1,x3)'.
    """
    rng = rng or random
    if n_clauses is None:
        base = int(round(n_vars * PHASE_TRANSITION_RATIO))
        delta = int(base * variance)
        n_clauses = rng.randint(base - delta, base + delta)

    names = [f"x{i}" for i in range(1, n_vars + 1)]
    width = min(clause_length, n_vars)

    groups = []
    for _ in range(n_clauses):
        chosen = rng.sample(names, width)
        lits = [name if rng.random() < 0.5 else f"{NEGATION}{name}" for name in chosen]
        groups.append(f"({','.join(lits)})")
    return "".join(groups)
