#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

import numpy as np
import torch

# Allow running without an install when invoked from repo root
import sys

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sdca_entropy import L2EntropyLoss, available_summations, solve  # noqa: E402

RESULT_TYPES = {
    "float": np.float32,
    "double": np.float64,
    "long double": np.longdouble,
}


def generate_problem(n: int, d: int, num_classes: int, seed: int, dtype: torch.dtype):
    """Gaussian class centers with unit-variance noise around them."""
    gen = torch.Generator().manual_seed(seed)
    centers = 2.0 * torch.randn(num_classes, d, generator=gen, dtype=torch.float64)
    y = torch.randint(0, num_classes, (n,), generator=gen)
    X = centers[y] + torch.randn(n, d, generator=gen, dtype=torch.float64)
    return X.to(dtype), y


def run_once(args) -> dict:
    dtype = torch.float32 if args.data == "float" else torch.float64
    X, y = generate_problem(args.n, args.d, args.num_classes, args.seed, dtype)
    result_type = RESULT_TYPES[args.precision]
    loss = L2EntropyLoss(args.k, args.C, args.summation, result_type=result_type, data_type=dtype)

    print(f"Loss: {loss}")
    print(f"Precision: {loss.precision_string()}")

    def progress(event: str, payload: dict) -> None:
        if event == "epoch":
            print(
                f"  epoch {payload['epoch']:4d}  primal={payload['primal_objective']:.6e}  "
                f"dual={payload['dual_objective']:.6e}  gap={payload['duality_gap']:.3e}"
            )

    t0 = time.perf_counter()
    result = solve(
        X,
        y,
        k=args.k,
        C=args.C,
        num_classes=args.num_classes,
        summation=args.summation,
        result_type=result_type,
        max_epochs=args.max_epochs,
        epsilon=args.epsilon,
        check_every=args.check_every,
        seed=args.seed,
        progress_callback=progress,
    )
    runtime = time.perf_counter() - t0

    accuracy = float(((X @ result.W).argmax(dim=1) == y).double().mean())

    return {
        "loss": loss.to_string(),
        "precision": loss.precision_string(),
        "n": args.n,
        "d": args.d,
        "num_classes": args.num_classes,
        "seed": args.seed,
        "runtime": runtime,
        "status": result.status,
        "epochs": result.epochs,
        "primal_objective": result.primal_objective,
        "dual_objective": result.dual_objective,
        "duality_gap": result.duality_gap,
        "train_accuracy": accuracy,
        "history": result.history,
        "metrics": result.metrics,
    }


def main():
    p = argparse.ArgumentParser(description="Run SDCA with the l2_entropy loss on a random multiclass problem")
    p.add_argument("--n", type=int, default=200)
    p.add_argument("--d", type=int, default=5)
    p.add_argument("--num-classes", type=int, default=4)
    p.add_argument("--k", type=int, default=1)
    p.add_argument("--C", type=float, default=1.0)
    p.add_argument("--summation", type=str, default="kahan", choices=available_summations())
    p.add_argument("--precision", type=str, default="double", choices=sorted(RESULT_TYPES))
    p.add_argument("--data", type=str, default="double", choices=["float", "double"])
    p.add_argument("--max-epochs", type=int, default=20)
    p.add_argument("--epsilon", type=float, default=1e-3)
    p.add_argument("--check-every", type=int, default=1)
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--out", type=str, default=None, help="Optional JSON output path")
    args = p.parse_args()

    print("Random Multiclass SDCA Experiment")
    print(
        f"Parameters: n={args.n}, d={args.d}, classes={args.num_classes}, "
        f"k={args.k}, C={args.C}, seed={args.seed}"
    )
    print("=" * 60)

    res = run_once(args)

    print("RESULTS:")
    print(json.dumps({key: value for key, value in res.items() if key != "history"}, indent=2))

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(res, f, indent=2)
        print(f"Saved results to {out_path}")


if __name__ == "__main__":
    main()
