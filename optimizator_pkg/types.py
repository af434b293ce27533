"""Type definitions, error classes and result dataclasses for consistent API responses."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

# Token kinds
NUMBER = "number"
VARIABLE = "variable"
OPERATOR = "operator"
LPAREN = "lparen"
RPAREN = "rparen"


@dataclass(frozen=True)
class Token:
    """A single lexeme of a function text."""

    kind: str
    value: Any = None

    @property
    def is_operand(self) -> bool:
        return self.kind in (NUMBER, VARIABLE)

    def __str__(self) -> str:
        if self.kind == LPAREN:
            return "("
        if self.kind == RPAREN:
            return ")"
        if self.kind == NUMBER:
            return repr(self.value)
        return str(self.value)


class ValidationError(Exception):
    """Raised when a query fails validation before any work is done."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when a function text cannot be compiled.

    Codes: UNRECOGNIZED_TOKEN, UNBALANCED_PARENTHESES, EMPTY_EXPRESSION,
    INVALID_SYNTAX, NO_VARIABLES, TOO_LONG.
    """

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EvalError(Exception):
    """Raised when a compiled expression cannot be evaluated.

    Codes: UNBOUND_VARIABLE, MALFORMED_EXPRESSION. Both point at a defect in
    the caller or the compiler, never at user input.
    """

    def __init__(self, message: str, code: str = "EVAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class OptimizationError(Exception):
    """Raised when an optimization request cannot produce an optimum.

    Codes: INVALID_FUNCTION, INVALID_QUERY, DID_NOT_CONVERGE, INTERNAL_ERROR,
    CANCELLED, TIMEOUT.
    """

    def __init__(
        self, message: str, code: str = "OPTIMIZATION_ERROR", transient: bool = False
    ):
        self.message = message
        self.code = code
        self.transient = transient
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidFunctionError(OptimizationError):
    """The function text did not compile; no iterations were run."""

    def __init__(self, parse_error: ParseError):
        self.parse_error = parse_error
        super().__init__(f"Invalid function: {parse_error}", "INVALID_FUNCTION")


class DidNotConvergeError(OptimizationError):
    """The iteration budget ran out before the simplex spread met the tolerance."""

    def __init__(
        self,
        iterations: int,
        best_point: tuple[float, ...],
        best_value: float,
        spread: float,
    ):
        self.iterations = iterations
        self.best_point = best_point
        self.best_value = best_value
        self.spread = spread
        super().__init__(
            f"Did not converge after {iterations} iterations (spread {spread:.6g})",
            "DID_NOT_CONVERGE",
        )


@dataclass(frozen=True)
class OptimizationQuery:
    """A single optimization request."""

    function: str
    tolerance: float
    max_iterations: int

    def validate(self) -> None:
        """Raise ValidationError unless tolerance and max_iterations are positive."""
        if not isinstance(self.function, str):
            raise ValidationError("function must be a string", "INVALID_QUERY")
        if isinstance(self.tolerance, bool) or not isinstance(
            self.tolerance, (int, float)
        ):
            raise ValidationError("tolerance must be a number", "INVALID_QUERY")
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ValidationError("tolerance must be positive", "INVALID_QUERY")
        if isinstance(self.max_iterations, bool) or not isinstance(
            self.max_iterations, int
        ):
            raise ValidationError("max_iterations must be an integer", "INVALID_QUERY")
        if self.max_iterations <= 0:
            raise ValidationError("max_iterations must be positive", "INVALID_QUERY")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OptimizationQuery:
        """Build a query from a JSON-style mapping ("iter" is accepted for max_iterations)."""
        max_iterations = data.get("max_iterations", data.get("iter"))
        return cls(
            function=data.get("function", ""),
            tolerance=data.get("tolerance"),
            max_iterations=max_iterations,
        )


@dataclass(frozen=True)
class Variable:
    """One coordinate of the optimum."""

    name: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class OptimizationReply:
    """Successful optimization: optimum in variable order plus its objective value."""

    variables: list[Variable]
    function_value: float
    iterations: int = 0
    history: list[float] = field(default_factory=list)

    def as_assignment(self) -> dict[str, float]:
        return {v.name: v.value for v in self.variables}


@dataclass
class OptimizationResult:
    """Result of an optimization request as returned by the public API."""

    ok: bool
    variables: list[Variable] | None = None
    function_value: float | None = None
    iterations: int | None = None
    history: list[float] | None = None
    error: str | None = None
    error_code: str | None = None
    parse_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.variables is not None:
            result_dict["variables"] = [v.to_dict() for v in self.variables]
        if self.function_value is not None:
            result_dict["function_value"] = self.function_value
        if self.iterations is not None:
            result_dict["iterations"] = self.iterations
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        if self.parse_code is not None:
            result_dict["parse_code"] = self.parse_code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return (
                f"OptimizationResult(ok=False, error_code={self.error_code!r}, "
                f"error={self.error!r})"
            )
        parts = [f"ok={self.ok}"]
        if self.variables is not None:
            parts.append(f"variables={self.variables!r}")
        if self.function_value is not None:
            parts.append(f"function_value={self.function_value!r}")
        if self.iterations is not None:
            parts.append(f"iterations={self.iterations!r}")
        return f"OptimizationResult({', '.join(parts)})"
