#!/usr/bin/env python3
"""
Generate random CDCL tutor sessions.

Each session submits a random formula near the 3-SAT phase transition and
plays a random user against the engine until the formula is satisfied or
declared UNSAT. Every step is exported as a JSON snapshot.

Usage:
    python generate.py
    python generate.py sessions.count=100 engine.heuristic=neg
    python generate.py sessions.use_pysat=false output.prefix=neg_
"""

import logging
from pathlib import Path

import hydra
from omegaconf import DictConfig

from cdcl_tutor import collect_sessions, create_datasets

logger = logging.getLogger(__name__)


def resolve_path(path: str, orig_cwd: str) -> str:
    """Resolve a potentially relative path against the original working directory."""
    p = Path(path)
    if not p.is_absolute():
        p = Path(orig_cwd) / p
    return str(p)


@hydra.main(version_base=None, config_path="configs", config_name="default")
def main(cfg: DictConfig):
    # Ensure logging shows on console (Hydra can redirect it)
    logging.basicConfig(level=cfg.logging.level, format="%(levelname)s: %(message)s", force=True)

    orig_cwd = hydra.utils.get_original_cwd()
    output_dir = resolve_path(cfg.output.dir, orig_cwd)

    print("=" * 60)
    print("CDCL Tutor Session Generation")
    print("=" * 60)
    print(f"  Sessions: {cfg.sessions.count}, variables: {cfg.sessions.var_min}-{cfg.sessions.var_max}")
    print(f"  Heuristic: {cfg.engine.heuristic}, max steps: {cfg.sessions.max_steps}")
    print(f"  Verify: {cfg.sessions.verify}, PySAT labels: {cfg.sessions.use_pysat}")
    print("=" * 60)

    data = collect_sessions(
        count=cfg.sessions.count,
        var_min=cfg.sessions.var_min,
        var_max=cfg.sessions.var_max,
        clause_length=cfg.sessions.clause_length,
        max_steps=cfg.sessions.max_steps,
        heuristic=cfg.engine.heuristic,
        undo_probability=cfg.sessions.undo_probability,
        verify=cfg.sessions.verify,
        use_pysat=cfg.sessions.use_pysat,
        seed=cfg.sessions.seed,
    )

    if data["verification_failures"]:
        logger.warning("%d steps failed invariant verification", data["verification_failures"])
    if data["spurious_unsat"]:
        logger.info(
            "%d sessions ended UNSAT on formulas Glucose finds satisfiable "
            "(a unit clause forces a level-0 assignment)",
            data["spurious_unsat"],
        )

    create_datasets(data, output_dir, prefix=cfg.output.prefix)
    print("\n=== GENERATION COMPLETE ===")
    print(f"Output directory: {output_dir}")


if __name__ == "__main__":
    main()
