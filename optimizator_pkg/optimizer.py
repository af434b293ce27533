"""Nelder-Mead simplex minimization.

The objective is any callable taking a coordinate vector and returning a
float; a CompiledExpression is such a callable. The objective is always passed
in explicitly, so independent runs never share state and may execute
concurrently.

Non-finite objective values (from 1/0, 0/0, domain errors) are ranked as
+inf: they never become the best vertex while a finite one exists.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np

from .config import ALPHA, GAMMA, INITIAL_STEP, RHO, SIGMA, START_VALUE
from .logging_config import get_logger
from .parser import CompiledExpression
from .types import DidNotConvergeError, OptimizationError

logger = get_logger("optimizer")

Objective = Callable[[np.ndarray], float]


@dataclass(frozen=True)
class NelderMeadParams:
    """Coefficients and starting simplex geometry."""

    alpha: float = ALPHA  # reflection
    gamma: float = GAMMA  # expansion
    rho: float = RHO  # contraction
    sigma: float = SIGMA  # shrink
    initial_step: float = INITIAL_STEP
    start_value: float = START_VALUE

    def __post_init__(self) -> None:
        if self.alpha <= 0:
            raise ValueError("alpha must be positive")
        if self.gamma <= 1 or self.gamma <= self.alpha:
            raise ValueError("gamma must exceed 1 and alpha")
        if not 0 < self.rho < 1:
            raise ValueError("rho must be in (0, 1)")
        if not 0 < self.sigma < 1:
            raise ValueError("sigma must be in (0, 1)")
        if self.initial_step == 0 or not math.isfinite(self.initial_step):
            raise ValueError("initial_step must be a non-zero finite number")

    def start_point(self, dimension: int) -> np.ndarray:
        return np.full(dimension, self.start_value, dtype=float)


DEFAULT_PARAMS = NelderMeadParams()


def _rank(value: float) -> float:
    return value if math.isfinite(value) else math.inf


class Simplex:
    """n+1 vertices in R^n with their objective values, best first after sort()."""

    def __init__(self, objective: Objective, x0: np.ndarray, step: float):
        self.objective = objective
        n = x0.shape[0]
        self.points = np.tile(x0, (n + 1, 1))
        for i in range(n):
            self.points[i + 1, i] += step
        self.values = np.array([self._evaluate(p) for p in self.points])
        self.evaluations = n + 1
        self.sort()

    def _evaluate(self, point: np.ndarray) -> float:
        return _rank(float(self.objective(point)))

    def evaluate(self, point: np.ndarray) -> float:
        self.evaluations += 1
        return self._evaluate(point)

    @property
    def dimension(self) -> int:
        return self.points.shape[1]

    @property
    def best_point(self) -> np.ndarray:
        return self.points[0]

    @property
    def best_value(self) -> float:
        return float(self.values[0])

    def sort(self) -> None:
        order = np.argsort(self.values, kind="stable")
        self.points = self.points[order]
        self.values = self.values[order]

    def centroid(self) -> np.ndarray:
        """Centroid of every vertex except the worst."""
        return self.points[:-1].mean(axis=0)

    def replace_worst(self, point: np.ndarray, value: float) -> None:
        self.points[-1] = point
        self.values[-1] = value

    def shrink(self, sigma: float) -> None:
        best = self.points[0]
        for i in range(1, len(self.points)):
            self.points[i] = best + sigma * (self.points[i] - best)
            self.values[i] = self.evaluate(self.points[i])

    def spread(self) -> float:
        # inf - inf is nan, which never satisfies a tolerance test
        with np.errstate(invalid="ignore"):
            return float(self.values.max() - self.values.min())


@dataclass
class SimplexRun:
    """Outcome of a converged Nelder-Mead run."""

    point: tuple[float, ...]
    value: float
    iterations: int
    evaluations: int
    spread: float
    history: list[float] = field(default_factory=list)


def _step(simplex: Simplex, params: NelderMeadParams) -> str:
    """Perform one Nelder-Mead iteration on a sorted simplex. Returns the move taken."""
    best_value = simplex.values[0]
    second_worst_value = simplex.values[-2]
    worst_point = simplex.points[-1]
    worst_value = simplex.values[-1]
    centroid = simplex.centroid()

    reflected = centroid + params.alpha * (centroid - worst_point)
    reflected_value = simplex.evaluate(reflected)

    if best_value <= reflected_value < second_worst_value:
        simplex.replace_worst(reflected, reflected_value)
        move = "reflect"
    elif reflected_value < best_value:
        expanded = centroid + params.gamma * (reflected - centroid)
        expanded_value = simplex.evaluate(expanded)
        if expanded_value < reflected_value:
            simplex.replace_worst(expanded, expanded_value)
            move = "expand"
        else:
            simplex.replace_worst(reflected, reflected_value)
            move = "reflect"
    else:
        contracted = centroid + params.rho * (worst_point - centroid)
        contracted_value = simplex.evaluate(contracted)
        if contracted_value < worst_value:
            simplex.replace_worst(contracted, contracted_value)
            move = "contract"
        else:
            simplex.shrink(params.sigma)
            move = "shrink"

    simplex.sort()
    return move


def nelder_mead(
    objective: Objective,
    x0: Sequence[float],
    tolerance: float,
    max_iterations: int,
    params: NelderMeadParams = DEFAULT_PARAMS,
    should_stop: Callable[[], bool] | None = None,
    record_history: bool = False,
) -> SimplexRun:
    """Minimize `objective` starting from `x0`.

    Args:
        objective: Callable mapping a coordinate vector to a float
        x0: Starting point (vertex 0 of the initial simplex)
        tolerance: Stop once max(values) - min(values) <= tolerance
        max_iterations: Iteration budget
        params: Nelder-Mead coefficients
        should_stop: Polled once per iteration; returning True cancels the run
        record_history: Keep the best value after every iteration

    Returns:
        SimplexRun with the best vertex

    Raises:
        DidNotConvergeError: The budget was exhausted before convergence
        OptimizationError: CANCELLED when should_stop() returned True
    """
    start = np.asarray(x0, dtype=float)
    if start.ndim != 1 or start.shape[0] == 0:
        raise ValueError("x0 must be a non-empty vector")

    simplex = Simplex(objective, start, params.initial_step)
    history = [simplex.best_value] if record_history else []

    def converged(iterations: int) -> SimplexRun:
        return SimplexRun(
            point=tuple(float(c) for c in simplex.best_point),
            value=simplex.best_value,
            iterations=iterations,
            evaluations=simplex.evaluations,
            spread=simplex.spread(),
            history=history,
        )

    if simplex.spread() <= tolerance:
        return converged(0)

    for iteration in range(1, max_iterations + 1):
        if should_stop is not None and should_stop():
            raise OptimizationError(
                f"Optimization cancelled after {iteration - 1} iterations", "CANCELLED"
            )
        move = _step(simplex, params)
        if record_history:
            history.append(simplex.best_value)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"iteration {iteration}: {move} best={simplex.best_value:.10g} "
                f"spread={simplex.spread():.3g}"
            )
        if simplex.spread() <= tolerance:
            return converged(iteration)

    raise DidNotConvergeError(
        iterations=max_iterations,
        best_point=tuple(float(c) for c in simplex.best_point),
        best_value=simplex.best_value,
        spread=simplex.spread(),
    )


def optimize_expression(
    expr: CompiledExpression,
    tolerance: float,
    max_iterations: int,
    params: NelderMeadParams = DEFAULT_PARAMS,
    should_stop: Callable[[], bool] | None = None,
    record_history: bool = False,
) -> SimplexRun:
    """Minimize a compiled function from the fixed starting point.

    The starting point has every coordinate equal to `params.start_value`.
    """
    run = nelder_mead(
        expr,
        params.start_point(expr.dimension),
        tolerance,
        max_iterations,
        params=params,
        should_stop=should_stop,
        record_history=record_history,
    )
    logger.debug(
        f"Minimized {expr.source!r} in {run.iterations} iterations "
        f"({run.evaluations} evaluations): value={run.value:.10g}"
    )
    return run
