"""CLI runner for the up-and-out barrier call pricer."""
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from barrier_pricing.barriers import (
    BarrierPricer,
    InsufficientSurvivorsError,
    MCConfig,
    OptionParameters,
)
from barrier_pricing.random_source import GENERATORS
from barrier_pricing.utils import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Monte Carlo pricer for an up-and-out barrier call")
    parser.add_argument("--spot", type=float, default=100.0, help="Initial price of the underlying")
    parser.add_argument("--strike", type=float, default=110.0, help="Strike price")
    parser.add_argument("--sigma", type=float, default=0.25, help="Annualized volatility")
    parser.add_argument("--rate", type=float, default=0.05, help="Risk-free rate")
    parser.add_argument("--maturity", type=float, default=0.75, help="Time to maturity in years")
    parser.add_argument("--barrier", type=float, default=130.0, help="Up-and-out barrier level")
    parser.add_argument("--paths", type=int, default=10000, help="Number of Monte Carlo paths")
    parser.add_argument("--steps", type=int, default=100, help="Time steps per path")
    parser.add_argument("--print-paths", type=int, default=5, help="Trajectories to print")
    parser.add_argument("--seed", type=int, default=42, help="Seed of the uniform generator")
    parser.add_argument("--generator", choices=sorted(GENERATORS), default="glibc")
    parser.add_argument("--strict", action="store_true",
                        help="Validate inputs and fail when fewer than two paths survive")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--trajectories-csv", default=None,
                        help="Write the printed trajectories to this CSV path")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = get_logger("barrier_pricing", level=args.log_level)

    params = OptionParameters(
        S0=args.spot, K=args.strike, sigma=args.sigma, r=args.rate,
        T=args.maturity, b=args.barrier, n_sim=args.paths,
    )
    cfg = MCConfig(
        n_steps=args.steps, n_print=args.print_paths, seed=args.seed,
        generator=args.generator, strict=args.strict, verbose=not args.json,
    )

    try:
        res = BarrierPricer(params, cfg=cfg).simulate()
    except InsufficientSurvivorsError as exc:
        log.error("%s", exc)
        return 1
    except ValueError as exc:
        log.error("invalid parameters: %s", exc)
        return 1

    if args.trajectories_csv:
        res.trajectory_frame().to_csv(args.trajectories_csv, index=False)
        log.info("trajectories saved to %s", args.trajectories_csv)

    if args.json:
        print(res.to_json())
    else:
        print(f"Price of the up-and-out barrier call: {res.price:g}")
        print(f"Paths exceeding the barrier: {res.barrier_hits} out of {res.n_paths}")
        print(f"Standard deviation of the price: {res.stddev:g}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
