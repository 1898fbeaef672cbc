#!/usr/bin/env python3
"""
Replay a session script against a formula and print every snapshot.

Usage:
    python simulate.py "(A,B)(-A,C)(-B,-C)" --steps "A; B"
    python simulate.py "(A,B)(-A,C)(-B,-C)" --script session.txt --heuristic neg
    python simulate.py "(-A,B)(-C,D)(-B,-D,E)(-E,F)(-E,-F)" --steps "A;C;commit" -v
"""

import argparse
import logging
import sys
from pathlib import Path

from omegaconf import OmegaConf

from cdcl_tutor import (
    Engine,
    EngineStatus,
    InvalidCommandError,
    UnknownHeuristicError,
    apply_command,
    fmt_clause,
    fmt_decisions,
    fmt_graph,
    fmt_lit_list,
    parse_script,
)

DEFAULT_CONFIG = Path(__file__).parent / "configs" / "default.yaml"


def print_state(engine: Engine, title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)
    for clause in engine.clauses:
        mark = "+" if engine.clause_satisfied(clause) else " "
        print(f"  [{mark}] {fmt_clause(clause, with_id=True)}")

    decisions = fmt_decisions(engine.decisions)
    if decisions:
        print("  Decisions:")
        for line in decisions.splitlines():
            print(f"    {line}")
    print(f"  Level: {engine.current_level}   Status: {engine.status.value}")

    if engine.status == EngineStatus.CONFLICT:
        print(f"  Conflict clause: {fmt_clause(engine.conflict_clause, with_id=True)}")
        print("  Implication graph (conflict level):")
        for line in fmt_graph(engine.level_graph).splitlines():
            print(f"    {line}")
        print(f"  UIP candidates: [{fmt_lit_list(engine.uip_candidates)}]")
        print(f"  Learned clause ({engine.heuristic.value}): {fmt_clause(engine.learned_clause)}")
    elif engine.status == EngineStatus.UNSAT:
        print(f"  UNSAT: {fmt_lit_list(engine.sentinel.parents)} forced at level 0")
    elif engine.status == EngineStatus.SATISFIED:
        print(f"  Satisfied by {engine.satisfying_assignment}")


def main():
    parser = argparse.ArgumentParser(description="Step through CDCL clause learning")
    parser.add_argument("formula", type=str, help="Formula text, e.g. '(A,B)(-A,C)'")
    parser.add_argument(
        "--script",
        type=str,
        default=None,
        help="Session script file (one command per line)"
    )
    parser.add_argument(
        "--steps",
        type=str,
        default="",
        help="Inline ';'-separated commands, e.g. 'A; -B; commit'"
    )
    parser.add_argument(
        "--heuristic",
        type=str,
        default=None,
        help="Clause-learning heuristic: uip or neg (default from config)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG),
        help="Config file (default: configs/default.yaml)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    cfg = OmegaConf.load(args.config)
    level = "DEBUG" if args.verbose else cfg.logging.level
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    text = args.steps
    if args.script:
        text = Path(args.script).read_text() + "\n" + text

    try:
        commands = parse_script(text)
        engine = Engine(args.heuristic or cfg.engine.heuristic)
    except (InvalidCommandError, UnknownHeuristicError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    engine.submit_formula(args.formula)
    print_state(engine, f"submit {args.formula}")

    for command in commands:
        try:
            apply_command(engine, command)
        except UnknownHeuristicError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        print_state(engine, command.raw)

    return 0


if __name__ == "__main__":
    sys.exit(main())
