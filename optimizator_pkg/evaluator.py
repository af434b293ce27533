"""Postfix evaluation with IEEE-754 arithmetic."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from .types import NUMBER, OPERATOR, VARIABLE, EvalError, Token

# numpy float64 ufuncs give inf/nan where Python floats would raise
# (1/0, 0/0, (-8)^(1/3), 10^400)
BINARY_OPERATIONS = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "^": np.power,
}


def evaluate(postfix: Sequence[Token], assignment: Mapping[str, float]) -> float:
    """Evaluate a postfix token sequence.

    Args:
        postfix: Tokens in postfix order (no parentheses)
        assignment: Value of every variable referenced by `postfix`

    Returns:
        The scalar result; may be inf or nan

    Raises:
        EvalError: UNBOUND_VARIABLE or MALFORMED_EXPRESSION
    """
    stack: list[np.float64] = []
    with np.errstate(all="ignore"):
        for token in postfix:
            if token.kind == NUMBER:
                stack.append(np.float64(token.value))
            elif token.kind == VARIABLE:
                try:
                    stack.append(np.float64(assignment[token.value]))
                except KeyError:
                    raise EvalError(
                        f"No value for variable {token.value!r}", "UNBOUND_VARIABLE"
                    ) from None
            elif token.kind == OPERATOR:
                if len(stack) < 2:
                    raise EvalError(
                        f"Operator {token.value!r} has too few operands",
                        "MALFORMED_EXPRESSION",
                    )
                b = stack.pop()
                a = stack.pop()
                stack.append(BINARY_OPERATIONS[token.value](a, b))
            else:
                raise EvalError(
                    f"Unexpected token in postfix: {token}", "MALFORMED_EXPRESSION"
                )

    if len(stack) != 1:
        raise EvalError(
            f"Expression left {len(stack)} values on the stack", "MALFORMED_EXPRESSION"
        )
    return float(stack[0])
