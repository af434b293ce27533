"""Optimization facade: compile, minimize and shape the reply.

Errors are raised as OptimizationError subclasses; api.py converts them into
typed results for callers that prefer not to handle exceptions.
"""

from __future__ import annotations

from collections.abc import Callable

from .logging_config import get_logger
from .optimizer import DEFAULT_PARAMS, NelderMeadParams, optimize_expression
from .parser import compile_expression
from .types import (
    DidNotConvergeError,
    EvalError,
    InvalidFunctionError,
    OptimizationError,
    OptimizationQuery,
    OptimizationReply,
    ParseError,
    ValidationError,
    Variable,
)

logger = get_logger("service")


def run_query(
    query: OptimizationQuery,
    params: NelderMeadParams = DEFAULT_PARAMS,
    should_stop: Callable[[], bool] | None = None,
    record_history: bool = False,
) -> OptimizationReply:
    """Run one optimization request.

    Args:
        query: Function text, tolerance and iteration budget
        params: Nelder-Mead coefficients and starting simplex
        should_stop: Optional cancellation check polled once per iteration
        record_history: Include the best value per iteration in the reply

    Returns:
        OptimizationReply with the optimum in variable order

    Raises:
        OptimizationError: INVALID_QUERY, INTERNAL_ERROR or CANCELLED
        InvalidFunctionError: The function text did not compile
        DidNotConvergeError: The iteration budget ran out
    """
    try:
        query.validate()
    except ValidationError as e:
        raise OptimizationError(str(e), e.code) from e

    try:
        expr = compile_expression(query.function)
    except ParseError as e:
        logger.info(f"Rejected function {query.function!r}: {e} ({e.code})")
        raise InvalidFunctionError(e) from e

    try:
        run = optimize_expression(
            expr,
            query.tolerance,
            query.max_iterations,
            params=params,
            should_stop=should_stop,
            record_history=record_history,
        )
    except DidNotConvergeError as e:
        logger.warning(f"{query.function!r}: {e}")
        raise
    except EvalError as e:
        logger.exception(f"Evaluation failed for compiled function {query.function!r}")
        raise OptimizationError(f"Internal error: {e}", "INTERNAL_ERROR") from e

    variables = [
        Variable(name=name, value=value)
        for name, value in zip(expr.variables, run.point)
    ]
    logger.info(
        f"Optimized {query.function!r}: value={run.value:.10g} "
        f"after {run.iterations} iterations"
    )
    return OptimizationReply(
        variables=variables,
        function_value=run.value,
        iterations=run.iterations,
        history=run.history,
    )


def optimize(
    function: str,
    tolerance: float,
    max_iterations: int,
    params: NelderMeadParams = DEFAULT_PARAMS,
    should_stop: Callable[[], bool] | None = None,
    record_history: bool = False,
) -> OptimizationReply:
    """Minimize `function` from the fixed starting point.

    Example:
        >>> reply = optimize("x1^2 + x2^2", 1e-6, 1000)
        >>> [v.name for v in reply.variables]
        ['x1', 'x2']
    """
    return run_query(
        OptimizationQuery(function, tolerance, max_iterations),
        params=params,
        should_stop=should_stop,
        record_history=record_history,
    )
