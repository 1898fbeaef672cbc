"""
CDCL Tutor Package

An interactive, step-wise CDCL engine for teaching clause learning: an
external actor supplies decisions, the engine propagates, detects
conflicts, builds implication graphs and proposes learned clauses.
Includes a session-script parser, invariant verification and a random
session collector.
"""

from .engine import Engine, EngineStatus
from .formula import Literal, Clause, parse_formula, extract_variables, generate_random_formula
from .history import Decision, History, Snapshot, SENTINEL_LABEL
from .propagation import Implication, find_implications
from .conflict import ConflictGraphs, find_conflict, build_conflict_graphs
from .graph import ImplicationGraph, SENTINEL, find_uip_candidates, find_grandparents
from .learning import Heuristic, ConflictAnalysis, learn_clause
from .satisfaction import is_satisfied, clause_satisfied
from .format import (
    fmt_lit, fmt_lit_list, fmt_clause, fmt_formula, fmt_decision,
    fmt_decisions, fmt_graph, fmt_satisfying_assignment
)

# Outer surfaces
from .parser import ScriptParser, Command, CommandType, parse_script, apply_command
from .verifier import EngineVerifier, verify_engine_state
from .collector import run_session, collect_sessions, create_datasets
from .errors import InvalidCommandError, UnknownHeuristicError

__all__ = [
    # Engine
    'Engine',
    'EngineStatus',

    # Formula store
    'Literal',
    'Clause',
    'parse_formula',
    'extract_variables',
    'generate_random_formula',

    # Decisions and history
    'Decision',
    'History',
    'Snapshot',
    'SENTINEL_LABEL',

    # Pipeline stages
    'Implication',
    'find_implications',
    'ConflictGraphs',
    'find_conflict',
    'build_conflict_graphs',
    'ImplicationGraph',
    'SENTINEL',
    'find_uip_candidates',
    'find_grandparents',
    'Heuristic',
    'ConflictAnalysis',
    'learn_clause',
    'is_satisfied',
    'clause_satisfied',

    # Formatting
    'fmt_lit',
    'fmt_lit_list',
    'fmt_clause',
    'fmt_formula',
    'fmt_decision',
    'fmt_decisions',
    'fmt_graph',
    'fmt_satisfying_assignment',

    # Sessions
    'ScriptParser',
    'Command',
    'CommandType',
    'parse_script',
    'apply_command',
    'EngineVerifier',
    'verify_engine_state',
    'run_session',
    'collect_sessions',
    'create_datasets',

    # Errors
    'InvalidCommandError',
    'UnknownHeuristicError',
]
