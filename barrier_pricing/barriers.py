"""
Up-and-out European call priced by Monte Carlo simulation of GBM paths.

Each path is stepped across a fixed grid with the exact log-normal update

    S_{t+dt} = S_t * exp((r - sigma^2 / 2) dt + sigma sqrt(dt) Z)

and is knocked out the first time the simulated spot reaches the barrier
(discrete monitoring at the grid points). Knocked-out paths are counted and
excluded from the payoff sample; survivors pay max(S_T - K, 0).

Statistics are taken over survivors only:
- mean payoff (NaN when every path is knocked out)
- sample standard deviation with the N - 1 denominator (NaN for fewer than
  two survivors)
- price = mean * exp(-r T)

These degenerate cases surface as NaN by default. ``MCConfig(strict=True)``
validates the inputs and raises ``InsufficientSurvivorsError`` instead.

References
- Glasserman (2003): Monte Carlo Methods in Financial Engineering, ch. 6.
- Marsaglia & Bray (1964): A convenient method for generating normal variables.
"""

from __future__ import annotations
import json
import logging
import math
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.stats import norm

from .random_source import NormalVariateSource, make_uniform_source

logger = logging.getLogger(__name__)


class InsufficientSurvivorsError(ValueError):
    """Fewer than two paths survived, so the sample statistics are undefined."""


@dataclass(frozen=True)
class OptionParameters:
    S0: float      # initial spot
    K: float       # strike
    sigma: float   # annualized volatility
    r: float       # risk-free rate (cont. comp.)
    T: float       # time to maturity in years
    b: float       # up-and-out barrier level
    n_sim: int     # number of simulated paths

    def validate(self) -> "OptionParameters":
        for name in ("S0", "K", "sigma", "r", "T", "b"):
            if not math.isfinite(float(getattr(self, name))):
                raise ValueError("Inputs must be finite numbers")
        if self.S0 <= 0 or self.K <= 0:
            raise ValueError("S0 and K must be positive")
        if self.sigma <= 0:
            raise ValueError("sigma must be positive")
        if self.T <= 0:
            raise ValueError("T must be positive")
        if int(self.n_sim) < 1:
            raise ValueError("n_sim must be >= 1")
        return self


@dataclass
class MCConfig:
    n_steps: int = 100
    n_print: int = 5
    seed: Optional[int] = 42
    generator: str = "glibc"
    strict: bool = False
    verbose: bool = True

    def validate(self) -> "MCConfig":
        if int(self.n_steps) < 1:
            raise ValueError("n_steps must be >= 1")
        if int(self.n_print) < 0:
            raise ValueError("n_print must be >= 0")
        return self


@dataclass
class PathState:
    spot: float
    knocked_out: bool = False
    trajectory: Optional[List[float]] = None

    def advance(self, growth: float, barrier: float) -> bool:
        """Apply one multiplicative step; return True once the path is knocked out."""
        self.spot *= growth
        if self.trajectory is not None:
            self.trajectory.append(self.spot)
        if self.spot >= barrier:
            self.knocked_out = True
        return self.knocked_out


@dataclass(frozen=True)
class BarrierBreach:
    path: int    # 1-based path number
    step: int    # 1-based time step
    spot: float


@dataclass(frozen=True)
class SimulationResult:
    price: float
    stddev: float
    barrier_hits: int
    mean_payoff: float
    n_paths: int
    survivors: int
    discount_factor: float
    drifted_spot: float
    trajectories: Tuple[Tuple[float, ...], ...] = ()
    breaches: Tuple[BarrierBreach, ...] = field(default=())

    @property
    def std_error(self) -> float:
        if self.survivors == 0:
            return float("nan")
        return float(self.discount_factor * self.stddev / math.sqrt(self.survivors))

    def confidence_interval(self, level: float = 0.95) -> Tuple[float, float]:
        z = float(norm.ppf(0.5 + 0.5 * level))
        half = z * self.std_error
        return self.price - half, self.price + half

    def as_tuple(self) -> Tuple[float, float, int]:
        return self.price, self.stddev, self.barrier_hits

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "stddev": self.stddev,
            "barrierHits": self.barrier_hits,
            "nPaths": self.n_paths,
        }

    def to_json(self) -> str:
        # NaN is emitted as the bare token NaN (json module default)
        return json.dumps(self.to_dict())

    def trajectory_frame(self) -> pd.DataFrame:
        """Retained diagnostic trajectories in long format: path, step, spot."""
        rows = [
            {"path": i + 1, "step": t + 1, "spot": s}
            for i, traj in enumerate(self.trajectories)
            for t, s in enumerate(traj)
        ]
        return pd.DataFrame(rows, columns=["path", "step", "spot"])


def _fmt(x: float) -> str:
    # default C++ ostream formatting of a double (6 significant digits)
    return f"{x:g}"


class BarrierPricer:
    """
    Monte Carlo pricer for an up-and-out European call.

    Parameters
    ----------
    params : OptionParameters
        Stored verbatim; only checked when ``cfg.strict`` is set.
    cfg : MCConfig, optional
        Grid size, diagnostic sample size, seed and generator choice.
    normal : NormalVariateSource, optional
        Normal source to draw from. Built from ``cfg.generator`` and
        ``cfg.seed`` when omitted.
    stream : file-like, optional
        Where diagnostic trajectory lines go; defaults to sys.stdout at
        simulation time.
    """

    def __init__(self, params: OptionParameters, cfg: Optional[MCConfig] = None,
                 normal: Optional[NormalVariateSource] = None, stream=None):
        self.params = params
        self.cfg = cfg if cfg is not None else MCConfig()
        if normal is None:
            normal = NormalVariateSource(make_uniform_source(self.cfg.generator, self.cfg.seed))
        self.normal = normal
        self.stream = stream

    def reseed(self, seed: Optional[int]) -> None:
        """Re-initialise the owned uniform generator."""
        self.normal.uniform.seed(seed)

    def price(self) -> Tuple[float, float, int]:
        """Return (discounted price, payoff stddev, barrier hits)."""
        return self.simulate().as_tuple()

    def _emit(self, line: str) -> None:
        if self.cfg.verbose:
            print(line, file=self.stream if self.stream is not None else sys.stdout)

    def simulate(self) -> SimulationResult:
        p = self.params
        cfg = self.cfg
        if cfg.strict:
            p.validate()
            cfg.validate()

        S0, K, sigma, r, T, b = p.S0, p.K, p.sigma, p.r, p.T, p.b
        n_sim = int(p.n_sim)
        n_steps = int(cfg.n_steps)
        n_print = int(cfg.n_print)

        variance = sigma * sigma * T
        ito_correction = -0.5 * variance
        # Ito-corrected forward; reported only, the paths below do not use it
        drifted_spot = S0 * math.exp(r * T + ito_correction)

        dt = T / float(n_steps)
        drift = (r - 0.5 * sigma * sigma) * dt
        vol = sigma * math.sqrt(dt)
        draw = self.normal.draw

        logger.debug("simulating %d paths x %d steps (S0=%s, K=%s, b=%s, sigma=%s, r=%s, T=%s)",
                     n_sim, n_steps, S0, K, b, sigma, r, T)

        running_sum = 0.0
        payoffs: List[float] = []
        barrier_hits = 0
        trajectories: List[Tuple[float, ...]] = []
        breaches: List[BarrierBreach] = []

        for i in range(n_sim):
            keep = i < n_print
            state = PathState(spot=S0, trajectory=[] if keep else None)

            for t in range(n_steps):
                if state.advance(math.exp(drift + vol * draw()), b):
                    if keep:
                        breaches.append(BarrierBreach(i + 1, t + 1, state.spot))
                        self._emit(f"Trajectory {i + 1}: barrier reached at time step {t + 1} "
                                   f"with price {_fmt(state.spot)}")
                    break

            if state.knocked_out:
                barrier_hits += 1
            else:
                payoff = max(state.spot - K, 0.0)
                running_sum += payoff
                payoffs.append(payoff)

            if keep:
                trajectories.append(tuple(state.trajectory))

        survivors = len(payoffs)
        if cfg.strict and survivors < 2:
            raise InsufficientSurvivorsError(
                f"{survivors} of {n_sim} paths survived; at least 2 are needed for a sample stddev"
            )

        with np.errstate(divide="ignore", invalid="ignore"):
            mean = float(np.float64(running_sum) / np.float64(survivors))
            sum_squared_diff = 0.0
            for payoff in payoffs:
                sum_squared_diff += (payoff - mean) * (payoff - mean)
            if survivors == 0:
                stddev = float("nan")
            else:
                stddev = float(np.sqrt(np.float64(sum_squared_diff) / np.float64(survivors - 1)))

        discount_factor = math.exp(-r * T)
        price = mean * discount_factor

        for i, traj in enumerate(trajectories):
            self._emit(f"Trajectory {i + 1}: " + "".join(_fmt(s) + " " for s in traj))

        logger.debug("done: price=%s stddev=%s hits=%d survivors=%d",
                     price, stddev, barrier_hits, survivors)

        return SimulationResult(
            price=price,
            stddev=stddev,
            barrier_hits=barrier_hits,
            mean_payoff=mean,
            n_paths=n_sim,
            survivors=survivors,
            discount_factor=discount_factor,
            drifted_spot=drifted_spot,
            trajectories=tuple(trajectories),
            breaches=tuple(breaches),
        )


def up_and_out_call_mc(
    S0: float,
    K: float,
    sigma: float,
    r: float,
    T: float,
    b: float,
    n_sim: int,
    cfg: Optional[MCConfig] = None,
    stream=None,
) -> SimulationResult:
    """
    Up-and-out call via Monte Carlo with a freshly seeded generator.

    Parameters
    S0, K, sigma, r, T, b : floats
    n_sim : number of paths
    cfg : MCConfig (seed, generator, grid and diagnostics)

    Returns
    SimulationResult; ``.as_tuple()`` gives (price, stddev, barrier_hits).
    """
    params = OptionParameters(S0=S0, K=K, sigma=sigma, r=r, T=T, b=b, n_sim=n_sim)
    return BarrierPricer(params, cfg=cfg, stream=stream).simulate()


__all__ = [
    "InsufficientSurvivorsError",
    "OptionParameters",
    "MCConfig",
    "PathState",
    "BarrierBreach",
    "SimulationResult",
    "BarrierPricer",
    "up_and_out_call_mc",
]
