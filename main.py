#!/usr/bin/env python3
"""
fgmodel: Factor Graph Models for Max-Margin Structured Learning

Usage:
    # Run the max oracle on a problem described in JSON
    python main.py oracle --input problem.json --output result.json

    # Run demos
    python main.py demo --example chain

    # Run tests
    python main.py test
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np

from fgmodel import (
    Factor,
    FactorGraph,
    FactorGraphFeatures,
    FactorGraphLabels,
    FactorGraphModel,
    FactorGraphObservation,
    MAPInferType,
    TableFactorType,
    __version__,
)


def build_model_from_dict(data: Dict[str, Any]) -> Tuple[FactorGraphModel, np.ndarray]:
    """
    Build a one-sample model from a problem description.

    Expected format:
    {
        "factor_types": [{"id": 0, "cardinalities": [2], "weights": [0.0, 1.0]}],
        "graph": {
            "cardinalities": [2, 2],
            "factors": [{"type": 0, "variables": [0], "data": [1.0]}]
        },
        "label": {"states": [0, 1], "loss_weights": [1.0, 1.0]},
        "weights": [...],            # optional, default: the types' weights
        "inference": "tree_max_prod", # optional
        "training": true             # optional, loss-augmented oracle
    }
    """
    ftypes = {}
    for ft in data["factor_types"]:
        ftypes[ft["id"]] = TableFactorType(ft["id"], ft["cardinalities"], ft["weights"])

    g = data["graph"]
    fg = FactorGraph(g["cardinalities"])
    for f in g["factors"]:
        fg.add_factor(Factor(ftypes[f["type"]], f["variables"], f.get("data", [1.0])))

    lab = data["label"]
    obs = FactorGraphObservation(lab["states"], lab.get("loss_weights"))

    model = FactorGraphModel(
        FactorGraphFeatures([fg]),
        FactorGraphLabels([obs]),
        inf_type=data.get("inference", MAPInferType.TREE_MAX_PROD),
    )
    for ftype in ftypes.values():
        model.add_factor_type(ftype)

    w = np.asarray(data["weights"], dtype=np.float64) if "weights" in data else model.pull_from_types()
    return model, w


def result_to_dict(model: FactorGraphModel, result, w: np.ndarray) -> Dict[str, Any]:
    return {
        "argmax": result.argmax.get_data().tolist(),
        "score": float(result.score),
        "delta": float(result.delta),
        "slack": result.slack(w),
        "psi_truth": result.psi_truth.tolist(),
        "psi_pred": result.psi_pred.tolist(),
        "dimension": model.total_dimension(),
    }


def cmd_oracle(args):
    """Execute the oracle command."""
    print(f"Loading problem from: {args.input}")
    with open(args.input, "r") as f:
        data = json.load(f)

    try:
        model, w = build_model_from_dict(data)
        training = bool(data.get("training", True)) and not args.predict
        result = model.argmax(w, 0, training=training)
    except Exception as e:
        print(f"Error running oracle: {e}")
        import traceback
        traceback.print_exc()
        return 1

    out = result_to_dict(model, result, w)
    print(f"\nInference: {model.inf_type.value}")
    print(f"  Parameters: {out['dimension']}")
    print(f"  Argmax:     {out['argmax']}")
    print(f"  Score:      {out['score']:.6f}")
    print(f"  Delta:      {out['delta']:.6f}")
    print(f"  Slack:      {out['slack']:.6f}")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(out, f, indent=2)
        print(f"\nResults saved to: {args.output}")

    return 0


def _chain_problem(n: int = 4) -> Dict[str, Any]:
    return {
        "factor_types": [
            {"id": 0, "cardinalities": [2], "weights": [0.0, 0.0, 0.0, 0.0]},
            {"id": 1, "cardinalities": [2, 2], "weights": [0.0, 0.5, 0.5, 0.0]},
        ],
        "graph": {
            "cardinalities": [2] * n,
            "factors": (
                [{"type": 0, "variables": [i], "data": [1.0, 0.2 * i]} for i in range(n)]
                + [{"type": 1, "variables": [i, i + 1], "data": [1.0]} for i in range(n - 1)]
            ),
        },
        "label": {"states": [0] * (n // 2) + [1] * (n - n // 2)},
        "weights": [0.2, 0.0, -0.5, 1.0, 0.0, 0.5, 0.5, 0.0],
    }


def demo_chain(inference: str = "tree_max_prod"):
    """Demo: binary chain, max oracle vs brute force."""
    print("=" * 60)
    print(f"Demo: Binary Chain ({inference})")
    print("=" * 60)

    data = _chain_problem()
    data["inference"] = inference
    model, w = build_model_from_dict(data)
    fg = model.features.get_sample(0)

    result = model.argmax(w, 0, training=False)
    states = result.argmax.get_data()
    print(f"\nArgmax: {states.tolist()}  energy = {fg.evaluate_energy(states):.6f}")

    best = min(
        fg.evaluate_energy([(k >> i) & 1 for i in range(fg.num_variables)])
        for k in range(2 ** fg.num_variables)
    )
    print(f"Verification (brute force): min energy = {best:.6f}")

    dot_pred = float(np.dot(w, result.psi_pred))
    print(f"<w, psi_pred> = {dot_pred:.6f}")
    match = np.isclose(fg.evaluate_energy(states), best) and np.isclose(dot_pred, -best)
    print(f"Match: {match}")
    return match


def cmd_demo(args):
    """Execute the demo command."""
    demos = {
        "chain": lambda: demo_chain("tree_max_prod"),
        "loopy": lambda: demo_chain("loopy_max_prod"),
        "lp": lambda: demo_chain("lp_relaxation"),
        "graphcut": lambda: demo_chain("graph_cut"),
    }

    names = list(demos) if args.example == "all" else [args.example]
    results = []
    for name in names:
        try:
            passed = demos[name]()
        except Exception as e:
            print(f"Error in {name}: {e}")
            passed = False
        results.append((name, passed))
        print()

    if len(results) > 1:
        print("=" * 60)
        print("Summary")
        print("=" * 60)
        for name, passed in results:
            print(f"  {name}: {'PASS' if passed else 'FAIL'}")

    return 0 if all(p for _, p in results) else 1


def cmd_test(args):
    """Execute the test command."""
    import subprocess

    test_dir = Path(__file__).parent / "tests"
    if not test_dir.exists():
        print(f"Test directory not found: {test_dir}")
        return 1

    cmd = [sys.executable, "-m", "pytest", str(test_dir)]
    if args.verbose:
        cmd.append("-v")
    if args.coverage:
        cmd.extend(["--cov=fgmodel", "--cov-report=term-missing"])

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=Path(__file__).parent)
    return result.returncode


def cmd_info(args):
    """Display system information."""
    print(f"fgmodel v{__version__}")
    print("Factor graph models for max-margin structured learning")
    print()
    print("Inference types:")
    for mode in MAPInferType:
        print(f"  {mode.value}")
    print()
    print("Python:", sys.version.split()[0])
    print("NumPy:", np.__version__)

    try:
        import scipy
        print("SciPy:", scipy.__version__)
    except ImportError:
        print("SciPy: not installed")

    try:
        import networkx
        print("NetworkX:", networkx.__version__)
    except ImportError:
        print("NetworkX: not installed")

    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="fgmodel",
        description="fgmodel: factor graph models for max-margin learning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Loss-augmented oracle on a JSON problem
  fgmodel oracle --input problem.json --output result.json

  # Plain MAP prediction
  fgmodel oracle --input problem.json --predict

  # Run demos
  fgmodel demo --example all

  # Run tests
  fgmodel test -v
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"fgmodel {__version__}"
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    oracle_parser = subparsers.add_parser("oracle", help="Run the max oracle on a problem")
    oracle_parser.add_argument("--input", "-i", type=str, required=True, help="Input JSON file")
    oracle_parser.add_argument("--output", "-o", type=str, help="Output JSON file")
    oracle_parser.add_argument(
        "--predict", "-p",
        action="store_true",
        help="Plain MAP inference (no loss augmentation)"
    )

    demo_parser = subparsers.add_parser("demo", help="Run demonstration examples")
    demo_parser.add_argument(
        "--example", "-e",
        choices=["chain", "loopy", "lp", "graphcut", "all"],
        default="all",
        help="Which example to run (default: all)"
    )

    test_parser = subparsers.add_parser("test", help="Run test suite")
    test_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    test_parser.add_argument("--coverage", "-c", action="store_true", help="With coverage")

    subparsers.add_parser("info", help="Show system information")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "oracle":
        return cmd_oracle(args)
    elif args.command == "demo":
        return cmd_demo(args)
    elif args.command == "test":
        return cmd_test(args)
    elif args.command == "info":
        return cmd_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
