#!/usr/bin/env python3
"""
Tests for the CDCL tutor engine.

Covers:
1. Formula parsing and variable extraction
2. Propagation, conflict analysis and clause learning on fixed inputs
3. Undo/redo/reset/commit behaviour
4. Session scripts, formatting, invariant verification and collection
"""

import json
import sys
import tempfile
from pathlib import Path

from cdcl_tutor import (
    SENTINEL,
    Clause,
    CommandType,
    Decision,
    Engine,
    EngineStatus,
    Heuristic,
    History,
    ImplicationGraph,
    InvalidCommandError,
    Literal,
    Snapshot,
    UnknownHeuristicError,
    apply_command,
    collect_sessions,
    create_datasets,
    extract_variables,
    find_grandparents,
    find_implications,
    find_uip_candidates,
    fmt_clause,
    fmt_decision,
    fmt_graph,
    generate_random_formula,
    is_satisfied,
    parse_formula,
    parse_script,
    run_session,
    verify_engine_state,
)

A, B, C, D, E, F = (Literal(name) for name in "ABCDEF")

SIMPLE = "(A,B)(-A,C)(-B,-C)"
TWO_LEVELS = "(-A,B)(-C,D)(-B,-D,E)(-E,F)(-E,-F)"


def labels(literals):
    return [lit.label for lit in literals]


def test_parse_formula():
    """Test formula parsing."""
    print("\nTesting formula parsing...")

    clauses = parse_formula(SIMPLE)
    assert [c.id for c in clauses] == [1, 2, 3]
    assert clauses[1].literals == (Literal("A", False), Literal("C", True))
    assert not any(c.learned for c in clauses)
    assert extract_variables(clauses) == ["A", "B", "C"]

    clauses = parse_formula("( x1 , - x2 )  (x2,x3)")
    assert labels(clauses[0]) == ["x1", "-x2"]
    assert extract_variables(clauses) == ["x1", "x2", "x3"]

    # Malformed or empty input yields nothing
    assert parse_formula("") == []
    assert parse_formula("A,B") == []
    assert parse_formula("(A,B") == []
    assert parse_formula(None) == []

    # Empty groups do not consume ids
    clauses = parse_formula("()(A,,-)(B)")
    assert [c.id for c in clauses] == [1, 2]
    assert labels(clauses[0]) == ["A"]
    print("  Formula parsing: PASS")


def test_random_formula():
    """Test random formula generation."""
    print("\nTesting random formula generation...")
    import random

    text = generate_random_formula(5, n_clauses=12, rng=random.Random(3))
    clauses = parse_formula(text)
    assert len(clauses) == 12
    assert all(len(c) == 3 for c in clauses)
    assert set(extract_variables(clauses)) <= {f"x{i}" for i in range(1, 6)}
    assert generate_random_formula(5, rng=random.Random(3)) == generate_random_formula(5, rng=random.Random(3))
    print("  Random formula generation: PASS")


def test_submit_then_reset():
    """submit_formula followed by reset gives back an empty engine."""
    print("\nTesting submit + reset...")

    fresh = Engine().snapshot()
    engine = Engine()
    engine.submit_formula(SIMPLE)
    engine.decide("A", True)
    engine.reset()

    assert engine.snapshot() == fresh
    assert engine.clauses == []
    assert engine.variables == []
    assert engine.current_level == 1
    assert not engine.can_undo and not engine.can_redo
    assert engine.status == EngineStatus.UNRESOLVED
    print("  Submit + reset: PASS")


def test_propagation_to_satisfaction():
    """Deciding A on (A,B)(-A,C)(-B,-C) forces C, then -B, and satisfies the formula."""
    print("\nTesting propagation to satisfaction...")

    engine = Engine()
    engine.submit_formula(SIMPLE)
    assert engine.decisions == {}
    assert engine.status == EngineStatus.UNRESOLVED

    engine.decide("A", True)
    assert engine.decisions == {
        "A": Decision("A", True, 1),
        "C": Decision("C", True, 1, implied=True, antecedent=2, parents=(A,)),
        "B": Decision("B", False, 1, implied=True, antecedent=3, parents=(C,)),
    }
    assert engine.assignment == {"A": True, "C": True, "B": False}
    assert engine.current_level == 2
    assert engine.status == EngineStatus.SATISFIED
    assert engine.satisfying_assignment == "(A ∧ C ∧ -B)"
    assert not engine.conflict and engine.sentinel is None
    print("  Propagation to satisfaction: PASS")


def test_conflict_single_level():
    """Overwriting B in a satisfied state produces a conflict on clause 3."""
    print("\nTesting single-level conflict...")

    engine = Engine()
    engine.submit_formula(SIMPLE)
    engine.decide("A", True)
    engine.decide("B", True)

    assert engine.status == EngineStatus.CONFLICT
    assert engine.conflict_clause.id == 3
    assert list(engine.decisions) == ["A", "C", "B"]
    assert engine.decisions["B"] == Decision("B", True, 2)
    assert engine.level_graph.to_dict() == {"B": [], "κ": ["B"]}
    assert engine.full_graph.to_dict() == {"A": [], "C": ["A"], "B": [], "κ": ["B"]}
    assert engine.sentinel == Decision(
        "κ", True, 2, implied=True, antecedent=3, parents=(B,), conflict=True
    )
    assert engine.uip_candidates == [B]
    assert engine.learned_clause == Clause(4, (B.negate(),), learned=True)
    assert engine.satisfying_assignment is None

    engine.set_heuristic("neg")
    assert labels(engine.learned_clause) == ["-A", "-B"]
    print("  Single-level conflict: PASS")


def test_conflict_two_levels():
    """Conflict at level 2 with a grandparent from level 1."""
    print("\nTesting two-level conflict...")

    engine = Engine()
    engine.submit_formula(TWO_LEVELS)
    engine.decide("A", True)
    assert list(engine.decisions) == ["A", "B"]
    engine.decide("C", True)

    assert engine.status == EngineStatus.CONFLICT
    assert engine.conflict_clause.id == 5
    assert engine.decisions["E"] == Decision("E", True, 2, implied=True, antecedent=3, parents=(B, D))
    assert engine.decisions["F"] == Decision("F", True, 2, implied=True, antecedent=4, parents=(E,))
    assert engine.level_graph.to_dict() == {
        "C": [], "D": ["C"], "E": ["D"], "F": ["E"], "κ": ["E", "F"],
    }
    assert engine.full_graph.to_dict() == {
        "A": [], "B": ["A"], "C": [], "D": ["C"], "E": ["B", "D"], "F": ["E"], "κ": ["E", "F"],
    }
    assert engine.uip_candidates == [C, D, E]
    assert engine.grandparents == [B]
    assert labels(engine.learned_clause) == ["-B", "-E"]
    assert engine.learned_clause.id == 6

    engine.set_heuristic(Heuristic.NEG)
    assert labels(engine.learned_clause) == ["-A", "-C"]
    assert verify_engine_state(engine)
    print("  Two-level conflict: PASS")


def test_commit_learned_clause():
    """Committing restarts over the augmented formula."""
    print("\nTesting commit...")

    engine = Engine()
    engine.submit_formula(TWO_LEVELS)
    assert not engine.commit_learned_clause()

    engine.decide("A", True)
    engine.decide("C", True)
    assert engine.commit_learned_clause()

    assert len(engine.clauses) == 6
    assert engine.clauses[-1] == Clause(6, (B.negate(), E.negate()), learned=True)
    assert engine.decisions == {}
    assert engine.current_level == 1
    assert not engine.can_undo
    assert engine.status == EngineStatus.UNRESOLVED
    assert engine.heuristic == Heuristic.UIP
    assert engine.learned_clause is None

    # The learned clause now takes part in propagation
    engine.decide("A", True)
    assert engine.decisions["E"] == Decision("E", False, 1, implied=True, antecedent=6, parents=(B,))
    assert engine.decisions["D"] == Decision(
        "D", False, 1, implied=True, antecedent=3, parents=(B, E.negate())
    )
    assert engine.decisions["C"] == Decision("C", False, 1, implied=True, antecedent=2, parents=(D.negate(),))
    assert engine.status == EngineStatus.SATISFIED
    assert engine.satisfying_assignment == "(A ∧ B ∧ -E ∧ -D ∧ -C)"
    print("  Commit: PASS")


def test_learned_unit_clause_is_level_zero():
    """A committed unit clause is forced at level 0, which flags UNSAT."""
    print("\nTesting learned unit clause...")

    engine = Engine()
    engine.submit_formula(SIMPLE)
    engine.decide("A", True)
    engine.decide("B", True)
    assert engine.commit_learned_clause()
    assert engine.decisions["B"].level == 0
    assert engine.unsat
    print("  Learned unit clause: PASS")


def test_unsat_at_level_zero():
    """(A)(-A): A is forced at level 0, UNSAT stays without conflict analysis."""
    print("\nTesting level-0 UNSAT...")

    engine = Engine()
    engine.submit_formula("(A)(-A)")
    assert engine.unsat
    assert engine.decisions == {"A": Decision("A", True, 0, implied=True, antecedent=1)}
    assert engine.sentinel.parents == (A,)
    assert engine.sentinel.conflict

    engine.decide("A", True)
    assert engine.unsat
    assert engine.status == EngineStatus.UNSAT
    assert not engine.conflict
    assert engine.level_graph is None and engine.full_graph is None
    assert engine.learned_clause is None

    # Undo keeps the level-0 implication, so the formula stays UNSAT
    assert engine.undo()
    assert engine.unsat
    print("  Level-0 UNSAT: PASS")


def test_undo_redo():
    """N undos restore the post-submission state, N redos replay the decisions."""
    print("\nTesting undo/redo...")

    engine = Engine()
    engine.submit_formula("(A,B,C,D)(-A,-B,-C,-D)")
    assert not engine.undo()
    assert not engine.redo()

    states = [engine.snapshot()]
    for var in "ABC":
        engine.decide(var, True)
        states.append(engine.snapshot())
    assert engine.decisions["D"] == Decision(
        "D", False, 3, implied=True, antecedent=2, parents=(A, B, C)
    )
    assert engine.status == EngineStatus.SATISFIED

    for expected in reversed(states[:-1]):
        assert engine.undo()
        assert engine.snapshot() == expected
    assert not engine.undo()
    assert engine.current_level == 1

    for expected in states[1:]:
        assert engine.redo()
        assert engine.snapshot() == expected
    assert not engine.redo()

    # A new decision discards the redo stack
    engine.undo()
    engine.decide("D", False)
    assert not engine.can_redo
    print("  Undo/redo: PASS")


def test_propagation_idempotent():
    """Propagating a fully propagated state changes nothing."""
    print("\nTesting propagation idempotence...")

    engine = Engine()
    engine.submit_formula(TWO_LEVELS)
    engine.decide("A", True)
    assert find_implications(engine.clauses, engine.assignment, engine.decisions) == []

    before = engine.snapshot()
    engine.set_heuristic(engine.heuristic)
    assert engine.snapshot() == before
    print("  Propagation idempotence: PASS")


def test_satisfaction_checker():
    """Satisfied iff every clause has a matching decided literal."""
    print("\nTesting satisfaction checker...")

    clauses = parse_formula(SIMPLE)
    decided = {
        "A": Decision("A", True, 1),
        "B": Decision("B", False, 2),
        "C": Decision("C", True, 1, implied=True, antecedent=2),
    }
    assert is_satisfied(clauses, decided)

    del decided["C"]
    assert not is_satisfied(clauses, decided)  # clause 2 has nothing matching
    assert not is_satisfied([], decided)
    print("  Satisfaction checker: PASS")


def test_uip_finder():
    """Path intersection on hand-built graphs."""
    print("\nTesting UIP finder...")

    # Two independent decisions meet only at the sentinel
    graph = ImplicationGraph()
    graph.add(A)
    graph.add(B)
    graph.add(SENTINEL, [A, B])
    assert find_uip_candidates(graph) == []

    # Diamond: every path goes through A and B
    graph = ImplicationGraph()
    graph.add(A)
    graph.add(B, [A])
    graph.add(C, [B])
    graph.add(D, [B])
    graph.add(SENTINEL, [C, D])
    assert find_uip_candidates(graph) == [A, B]
    assert find_grandparents(graph, [A, B]) == []
    assert find_grandparents(graph, []) == [B]

    assert find_uip_candidates(ImplicationGraph()) == []
    print("  UIP finder: PASS")


def test_heuristic_errors():
    """Unknown heuristics are rejected."""
    print("\nTesting heuristic selection...")

    assert Heuristic.parse(" NEG ") == Heuristic.NEG
    engine = Engine("neg")
    assert engine.heuristic == Heuristic.NEG
    try:
        engine.set_heuristic("vsids")
        assert False, "expected UnknownHeuristicError"
    except UnknownHeuristicError as e:
        assert e.name == "vsids"
    assert engine.heuristic == Heuristic.NEG
    print("  Heuristic selection: PASS")


def test_history():
    """History stacks behave like the engine expects."""
    print("\nTesting history...")

    history = History()
    s0, s1, s2 = (Snapshot.capture({str(i): True}, {}) for i in range(3))
    assert history.undo(s0) is None

    history.push(s0)
    history.push(s1)
    assert history.depth() == 2
    assert history.undo(s2) is s1
    assert history.can_redo()
    assert history.redo(s1) is s2
    history.push(s2)
    assert not history.can_redo()
    history.clear()
    assert not history.can_undo()
    print("  History: PASS")


def test_script_parser():
    """Test the session script parser."""
    print("\nTesting script parser...")

    commands = parse_script(
        "submit (A,B)(-A,C)\n"
        "A; -B   # two decisions\n"
        "decide C=0\n"
        "\n"
        "undo; redo\n"
        "heuristic neg\n"
        "commit\n"
        "reset\n"
    )
    assert [c.type for c in commands] == [
        CommandType.SUBMIT, CommandType.DECIDE, CommandType.DECIDE, CommandType.DECIDE,
        CommandType.UNDO, CommandType.REDO, CommandType.HEURISTIC, CommandType.COMMIT,
        CommandType.RESET,
    ]
    assert commands[0].argument == "(A,B)(-A,C)"
    assert commands[1].literal == A
    assert commands[2].literal == B.negate()
    assert commands[3].literal == C.negate()
    assert commands[6].argument == "neg"
    assert commands[3].line == 3

    for bad in ("undo now", "decide", "A=maybe", "A B", "-"):
        try:
            parse_script(bad)
            assert False, f"expected InvalidCommandError for {bad!r}"
        except InvalidCommandError:
            pass
    print("  Script parser: PASS")


def test_apply_script():
    """Scripts drive the engine like direct calls."""
    print("\nTesting script application...")

    scripted = Engine()
    for command in parse_script(f"submit {TWO_LEVELS}\nA\nC\nheuristic neg"):
        apply_command(scripted, command)

    direct = Engine()
    direct.submit_formula(TWO_LEVELS)
    direct.decide("A", True)
    direct.decide("C", True)
    direct.set_heuristic("neg")
    assert scripted.snapshot() == direct.snapshot()
    print("  Script application: PASS")


def test_formatting():
    """Test text formatting."""
    print("\nTesting formatting...")

    assert fmt_clause(Clause(4, (B.negate(),), learned=True), with_id=True) == "c4*: (-B)"
    assert fmt_clause(Clause(1, (A, B.negate()))) == "(A,-B)"
    assert fmt_decision(Decision("A", True, 1)) == "A = True @1"
    assert fmt_decision(Decision("C", True, 1, implied=True, antecedent=2, parents=(A,))) == \
        "C = True @1 <- c2 [A]"

    engine = Engine()
    engine.submit_formula(SIMPLE)
    engine.decide("A", True)
    engine.decide("B", True)
    assert fmt_graph(engine.level_graph) == "B <- []\nκ <- [B]"
    assert fmt_graph(None) == ""

    snapshot = engine.snapshot()
    assert json.loads(json.dumps(snapshot)) == snapshot
    assert snapshot["status"] == "conflict"
    assert snapshot["learned_clause"] == ["-B"]
    assert [c["satisfied"] for c in snapshot["clauses"]] == [True, True, False]
    print("  Formatting: PASS")


def test_sessions_verify():
    """Random sessions keep every invariant and learned clauses have the promised shape."""
    print("\nTesting random sessions...")
    import random

    rng = random.Random(11)
    for heuristic in ("uip", "neg"):
        for _ in range(15):
            formula = generate_random_formula(rng.randint(3, 7), rng=rng)
            session = run_session(formula, heuristic=heuristic, max_steps=40, rng=rng)
            assert session["verification_failures"] == 0
            for step in session["steps"]:
                state = step["state"]
                if state["status"] != "conflict":
                    continue
                manual = sum(1 for d in state["decisions"].values() if not d["implied"])
                if heuristic == "neg":
                    assert len(state["learned_clause"]) == manual
                else:
                    assert len(state["learned_clause"]) <= 2
    print("  Random sessions: PASS")


def test_collect_and_export():
    """Collect a few sessions with Glucose labels and write them out."""
    print("\nTesting collection...")

    data = collect_sessions(count=6, var_min=3, var_max=5, max_steps=30, seed=5, use_pysat=True)
    assert len(data["sessions"]) == 6
    assert data["verification_failures"] == 0
    assert sum(data["outcomes"].values()) == 6
    assert all(isinstance(s["pysat_satisfiable"], bool) for s in data["sessions"])

    with tempfile.TemporaryDirectory() as tmp:
        path = create_datasets(data, tmp, prefix="t_")
        assert path == Path(tmp) / "t_sessions.json"
        with open(path, encoding="utf-8") as f:
            sessions = json.load(f)
        assert len(sessions) == 6
        assert sessions[0]["steps"][0]["action"] == "submit"
        assert (Path(tmp) / "t_summary.json").exists()
    print("  Collection: PASS")


TESTS = [
    test_parse_formula,
    test_random_formula,
    test_submit_then_reset,
    test_propagation_to_satisfaction,
    test_conflict_single_level,
    test_conflict_two_levels,
    test_commit_learned_clause,
    test_learned_unit_clause_is_level_zero,
    test_unsat_at_level_zero,
    test_undo_redo,
    test_propagation_idempotent,
    test_satisfaction_checker,
    test_uip_finder,
    test_heuristic_errors,
    test_history,
    test_script_parser,
    test_apply_script,
    test_formatting,
    test_sessions_verify,
    test_collect_and_export,
]


def main():
    """Run all tests."""
    print("=" * 50)
    print("CDCL Tutor Tests")
    print("=" * 50)

    if "--verbose" in sys.argv or "-v" in sys.argv:
        import logging
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    failed = 0
    for test in TESTS:
        try:
            test()
        except AssertionError as e:
            failed += 1
            print(f"  FAIL: {test.__name__}: {e}")

    print("\n" + "=" * 50)
    if not failed:
        print("ALL TESTS PASSED")
    else:
        print(f"{failed} TESTS FAILED")
    print("=" * 50)

    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
