"""Public API for Optimizator - returns structured objects without side effects."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from .formatting import describe_expression
from .optimizer import DEFAULT_PARAMS, NelderMeadParams
from .parser import compile_expression
from .service import run_query
from .types import (
    DidNotConvergeError,
    InvalidFunctionError,
    OptimizationError,
    OptimizationQuery,
    OptimizationResult,
    ParseError,
)


def result_from_error(error: OptimizationError) -> OptimizationResult:
    """Convert a raised OptimizationError into a failed OptimizationResult."""
    parse_code = None
    if isinstance(error, InvalidFunctionError):
        parse_code = error.parse_error.code
    result = OptimizationResult(
        ok=False, error=str(error), error_code=error.code, parse_code=parse_code
    )
    if isinstance(error, DidNotConvergeError):
        result.iterations = error.iterations
    return result


def run(
    query: OptimizationQuery,
    params: NelderMeadParams = DEFAULT_PARAMS,
    should_stop: Callable[[], bool] | None = None,
    record_history: bool = False,
) -> OptimizationResult:
    """Run an OptimizationQuery and return a typed result (never raises OptimizationError)."""
    try:
        reply = run_query(
            query,
            params=params,
            should_stop=should_stop,
            record_history=record_history,
        )
    except OptimizationError as e:
        return result_from_error(e)
    return OptimizationResult(
        ok=True,
        variables=reply.variables,
        function_value=reply.function_value,
        iterations=reply.iterations,
        history=reply.history if record_history else None,
    )


def optimize(
    function: str,
    tolerance: float,
    max_iterations: int,
    params: NelderMeadParams = DEFAULT_PARAMS,
    record_history: bool = False,
) -> OptimizationResult:
    """Minimize a function given as text.

    Args:
        function: Function text (e.g., "x1^2 + x2^2")
        tolerance: Convergence tolerance on the simplex value spread (> 0)
        max_iterations: Iteration budget (> 0)
        params: Nelder-Mead coefficients and starting simplex
        record_history: Include the best value per iteration

    Returns:
        OptimizationResult; on failure ok=False with error_code set to
        INVALID_FUNCTION, INVALID_QUERY, DID_NOT_CONVERGE or INTERNAL_ERROR

    Example:
        >>> from optimizator_pkg.api import optimize
        >>> result = optimize("(x1-3)^2 + (x2+1)^2", 1e-9, 1000)
        >>> result.ok
        True
        >>> [v.name for v in result.variables]
        ['x1', 'x2']
        >>> optimize("x1^2 + x2^2", 1e-6, 1).error_code
        'DID_NOT_CONVERGE'
    """
    return run(
        OptimizationQuery(function, tolerance, max_iterations),
        params=params,
        record_history=record_history,
    )


def validate_function(function: str) -> tuple[bool, str | None]:
    """Validate a function text without optimizing it.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from optimizator_pkg.api import validate_function
        >>> validate_function("x1 + 2*x2")
        (True, None)
        >>> validate_function("x1 + (x2")
        (False, "Unmatched '('")
    """
    try:
        compile_expression(function)
        return True, None
    except ParseError as e:
        return False, str(e)
    except (TypeError, AttributeError) as e:
        return False, f"Validation error: {e}"


def evaluate_function(function: str, assignment: Mapping[str, float]) -> float:
    """Evaluate a function text at one point.

    Constant functions are accepted here; the result may be inf or nan.

    Raises:
        ParseError: The text did not compile
        EvalError: `assignment` lacks one of the function's variables

    Example:
        >>> evaluate_function("x1*(x2+3)^2", {"x1": 2, "x2": 1})
        32.0
    """
    return compile_expression(function, require_variables=False).evaluate(assignment)


def describe_function(function: str) -> str:
    """Return the function as understood by the compiler, e.g. "x1² + x2²".

    Raises:
        ParseError: The text did not compile
    """
    return describe_expression(compile_expression(function, require_variables=False))
