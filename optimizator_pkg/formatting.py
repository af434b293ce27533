"""Presentation helpers: number formatting and SymPy rendering of compiled functions.

Rounding or truncating optimum coordinates happens only here; the engine
always reports full precision.
"""

from __future__ import annotations

import math
import re
from typing import Any

import sympy as sp

from .config import OUTPUT_PRECISION
from .parser import CompiledExpression
from .types import NUMBER, VARIABLE, OptimizationResult

_SYMPY_OPERATIONS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
    "^": lambda a, b: sp.Pow(a, b),
}


def superscriptify(input_str: str) -> str:
    """Convert numeric string to Unicode superscript characters.

    Args:
        input_str: Input string with digits and '-' (e.g., "123", "-5")

    Returns:
        String with superscript Unicode characters (e.g., "¹²³", "⁻⁵")
    """
    mapping = {
        "0": "⁰",
        "1": "¹",
        "2": "²",
        "3": "³",
        "4": "⁴",
        "5": "⁵",
        "6": "⁶",
        "7": "⁷",
        "8": "⁸",
        "9": "⁹",
        "-": "⁻",
    }
    return "".join(mapping.get(char, char) for char in input_str)


def format_superscript(expr_str: str) -> str:
    """Replace Python power notation (**) with Unicode superscripts.

    Args:
        expr_str: Expression string (e.g., "x1**2", "x1**-3")

    Returns:
        String with superscripts (e.g., "x1²", "x1⁻³")
    """
    return re.sub(r"\*\*(\-?\d+)(?![\d.])", lambda m: superscriptify(m.group(1)), expr_str)


def format_number(val: Any, precision: int = OUTPUT_PRECISION) -> str:
    """Format a numeric value with specified precision.

    Args:
        val: Numeric value to format
        precision: Number of significant digits (default: OUTPUT_PRECISION)

    Returns:
        Formatted string representation of the number
    """
    try:
        fmt = "{:." + str(int(precision)) + "g}"
        return fmt.format(float(val))
    except (ValueError, TypeError, OverflowError):
        return str(val)


def _literal(value: float) -> sp.Expr:
    # Literals beyond the float64 range arrive as inf
    if math.isinf(value):
        return sp.oo if value > 0 else -sp.oo
    if value.is_integer():
        return sp.Integer(int(value))
    return sp.Rational(str(value))


def to_sympy(expr: CompiledExpression) -> sp.Expr:
    """Rebuild a compiled function as a SymPy expression.

    Literals become exact integers/rationals so the rendering reads like the
    input ("x1/2", not "0.5*x1").
    """
    stack: list[sp.Expr] = []
    for token in expr.postfix:
        if token.kind == NUMBER:
            stack.append(_literal(token.value))
        elif token.kind == VARIABLE:
            stack.append(sp.Symbol(token.value, real=True))
        else:
            b = stack.pop()
            a = stack.pop()
            stack.append(_SYMPY_OPERATIONS[token.value](a, b))
    return stack[0]


def describe_expression(expr: CompiledExpression, pretty: bool = True) -> str:
    """Human-readable form of a compiled function, e.g. "x1² + x2²"."""
    text = str(to_sympy(expr))
    return format_superscript(text) if pretty else text


def format_value(value: float, precision: int = OUTPUT_PRECISION, truncate: bool = False) -> str:
    """Format one coordinate; `truncate` drops the fractional part toward zero."""
    if truncate and math.isfinite(value):
        return str(math.trunc(value))
    return format_number(value, precision)


def format_result(
    result: OptimizationResult,
    precision: int = OUTPUT_PRECISION,
    truncate: bool = False,
) -> str:
    """Render an OptimizationResult for terminal output.

    Args:
        result: Result returned by api.optimize()
        precision: Significant digits for coordinates and the function value
        truncate: Show coordinates as integers (truncated toward zero)

    Returns:
        Multi-line string
    """
    if not result.ok:
        return f"Error ({result.error_code}): {result.error}"
    lines = [
        f"  {v.name} = {format_value(v.value, precision, truncate)}"
        for v in result.variables or []
    ]
    lines.append(f"  f = {format_number(result.function_value, precision)}")
    if result.iterations is not None:
        lines.append(f"  iterations: {result.iterations}")
    return "\n".join(["Optimum:"] + lines)
