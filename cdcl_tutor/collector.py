"""
Random session collection and dataset export.

A session plays the role of a user at the tutor: it submits a random
formula, decides random unassigned variables, sometimes undoes or redoes,
commits the learned clause after every conflict, and stops once the
formula is satisfied or declared UNSAT.
"""

import json
import logging
import random
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pysat.solvers import Glucose3
from tqdm import tqdm

from .engine import Engine, EngineStatus
from .formula import Clause, extract_variables, generate_random_formula, parse_formula
from .learning import Heuristic
from .verifier import EngineVerifier

logger = logging.getLogger(__name__)

TERMINAL = (EngineStatus.SATISFIED, EngineStatus.UNSAT)


def to_dimacs(clauses: Sequence[Clause]) -> List[List[int]]:
    """Number the variables in first-seen order and return integer clauses."""
    index = {var: i for i, var in enumerate(extract_variables(clauses), start=1)}
    return [
        [index[lit.variable] if lit.positive else -index[lit.variable] for lit in clause]
        for clause in clauses
    ]


def pysat_satisfiable(clauses: Sequence[Clause]) -> bool:
    """Ground truth from Glucose."""
    with Glucose3(bootstrap_with=to_dimacs(clauses)) as solver:
        return solver.solve()


def pysat_accepts(clauses: Sequence[Clause], assignment: Dict[str, bool]) -> bool:
    """True if Glucose finds a model extending the given assignment."""
    index = {var: i for i, var in enumerate(extract_variables(clauses), start=1)}
    assumptions = [index[var] if value else -index[var] for var, value in assignment.items() if var in index]
    with Glucose3(bootstrap_with=to_dimacs(clauses)) as solver:
        return solver.solve(assumptions=assumptions)


def _next_action(engine: Engine, rng: random.Random, undo_probability: float) -> Optional[str]:
    """Perform one user action. Returns its description, or None if stuck."""
    if engine.status == EngineStatus.CONFLICT:
        learned = engine.learned_clause
        if engine.commit_learned_clause():
            return f"commit c{learned.id}"
        if engine.undo():
            return "undo"
        return None

    if engine.can_undo and rng.random() < undo_probability:
        engine.undo()
        return "undo"
    if engine.can_redo and rng.random() < undo_probability:
        engine.redo()
        return "redo"

    assignment = engine.assignment
    free = [var for var in engine.variables if var not in assignment]
    if not free:
        return None
    var = rng.choice(free)
    polarity = rng.random() < 0.5
    engine.decide(var, polarity)
    return f"decide {var if polarity else '-' + var}"


def run_session(
    formula: str,
    heuristic: str = Heuristic.UIP.value,
    max_steps: int = 50,
    undo_probability: float = 0.1,
    rng: Optional[random.Random] = None,
    verify: bool = True,
) -> Dict[str, Any]:
    """
    Drive an engine through one random session.

    Args:
        formula: Formula text.
        heuristic: Clause-learning heuristic.
        max_steps: Maximum number of user actions.
        undo_probability: Chance of an undo (and of a redo) before each decision.
        rng: Random generator.
        verify: Whether to check engine invariants after every step.

    Returns:
        Dictionary with the recorded steps, the outcome and statistics.
    """
    rng = rng or random.Random()
    engine = Engine(heuristic)
    engine.submit_formula(formula)

    steps = [{"action": "submit", "state": engine.snapshot()}]
    verification_failures = 0
    commits = 0

    for _ in range(max_steps):
        if engine.status in TERMINAL:
            break
        action = _next_action(engine, rng, undo_probability)
        if action is None:
            break
        if action.startswith("commit"):
            commits += 1
        steps.append({"action": action, "state": engine.snapshot()})

        if verify:
            verifier = EngineVerifier(engine)
            if not verifier.verify():
                verification_failures += 1
                logger.warning("Invariant check failed after '%s': %s", action, verifier.problems)

    return {
        "formula": formula,
        "heuristic": engine.heuristic.value,
        "steps": steps,
        "outcome": engine.status.value,
        "commits": commits,
        "final_assignment": engine.assignment,
        "verification_failures": verification_failures,
    }


def collect_sessions(
    count: int,
    var_min: int,
    var_max: int,
    clause_length: int = 3,
    max_steps: int = 50,
    heuristic: str = Heuristic.UIP.value,
    undo_probability: float = 0.1,
    verify: bool = True,
    use_pysat: bool = True,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run `count` random sessions.

    Args:
        count: Number of sessions.
        var_min: Minimum number of variables.
        var_max: Maximum number of variables.
        clause_length: Literals per generated clause.
        max_steps: Maximum user actions per session.
        heuristic: Clause-learning heuristic.
        undo_probability: Chance of an undo/redo before each decision.
        verify: Whether to check engine invariants after every step.
        use_pysat: Whether to label each formula with Glucose's answer.
        seed: Seed for formulas and actions.

    Returns:
        Dictionary with sessions and statistics.
    """
    rng = random.Random(seed)
    sessions = []
    outcomes: Counter = Counter()
    verification_failures = 0
    spurious_unsat = 0

    for _ in tqdm(range(count), desc="Running sessions"):
        n_vars = rng.randint(var_min, var_max)
        formula = generate_random_formula(n_vars, clause_length=clause_length, rng=rng)
        session = run_session(
            formula,
            heuristic=heuristic,
            max_steps=max_steps,
            undo_probability=undo_probability,
            rng=rng,
            verify=verify,
        )
        if use_pysat:
            clauses = parse_formula(formula)
            satisfiable = pysat_satisfiable(clauses)
            session["pysat_satisfiable"] = satisfiable
            if session["outcome"] == EngineStatus.SATISFIED.value:
                assert pysat_accepts(clauses, session["final_assignment"]), \
                    "Satisfying assignment rejected by Glucose"
            if session["outcome"] == EngineStatus.UNSAT.value and satisfiable:
                spurious_unsat += 1

        outcomes[session["outcome"]] += 1
        verification_failures += session["verification_failures"]
        sessions.append(session)

    if verify:
        logger.info("Verification complete. Total failures: %d", verification_failures)

    return {
        "sessions": sessions,
        "outcomes": dict(outcomes),
        "verification_failures": verification_failures,
        "spurious_unsat": spurious_unsat if use_pysat else None,
    }


def create_datasets(data: Dict[str, Any], output_dir: str, prefix: str = "") -> Path:
    """
    Save collected sessions.

    Args:
        data: Dictionary from collect_sessions().
        output_dir: Output directory path.
        prefix: Prefix for filenames.

    Returns:
        Path of the sessions file.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    sessions_file = output_path / f"{prefix}sessions.json"
    with open(sessions_file, 'w', encoding='utf-8') as f:
        json.dump(data["sessions"], f, indent=2, ensure_ascii=False)

    summary = {key: value for key, value in data.items() if key != "sessions"}
    summary["count"] = len(data["sessions"])
    with open(output_path / f"{prefix}summary.json", 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2)

    print(f"Saved sessions to {sessions_file}")
    print(f"  Sessions: {summary['count']}")
    for outcome, n in sorted(data["outcomes"].items()):
        print(f"  {outcome}: {n}")
    return sessions_file
