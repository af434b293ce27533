"""Tests for postfix evaluation, cross-checked against SymPy."""

import math
import unittest

import pytest
import sympy as sp

from optimizator_pkg.evaluator import evaluate
from optimizator_pkg.formatting import to_sympy
from optimizator_pkg.parser import compile_expression
from optimizator_pkg.types import NUMBER, OPERATOR, EvalError, Token


def _eval(text, **assignment):
    return compile_expression(text, require_variables=False).evaluate(assignment)


class TestArithmetic(unittest.TestCase):
    """Test evaluation results."""

    def test_sum(self):
        self.assertEqual(_eval("x1+x2", x1=2, x2=3), 5.0)

    def test_nested(self):
        self.assertEqual(_eval("x1*(x2+3)^2", x1=2, x2=1), 32.0)

    def test_precedence(self):
        self.assertEqual(_eval("2+3*4"), 14.0)

    def test_parentheses(self):
        self.assertEqual(_eval("(2+3)*4"), 20.0)

    def test_exponent_left_associative(self):
        self.assertEqual(_eval("2^3^2"), 64.0)

    def test_operand_order(self):
        self.assertEqual(_eval("10-4-3"), 3.0)
        self.assertEqual(_eval("8/4/2"), 1.0)
        self.assertEqual(_eval("x1/x2", x1=1, x2=4), 0.25)

    def test_fractional_power(self):
        self.assertAlmostEqual(_eval("x1^0.5", x1=9), 3.0)

    def test_result_is_float(self):
        self.assertIsInstance(_eval("x1+1", x1=1), float)


class TestNonFinite(unittest.TestCase):
    """Division by zero and domain errors follow IEEE-754 instead of raising."""

    def test_division_by_zero(self):
        self.assertEqual(_eval("x1/0", x1=1), math.inf)
        self.assertEqual(_eval("x1/0", x1=-1), -math.inf)

    def test_zero_over_zero(self):
        self.assertTrue(math.isnan(_eval("0/0")))

    def test_negative_base_fractional_power(self):
        self.assertTrue(math.isnan(_eval("(x1-9)^0.5", x1=1)))

    def test_overflow(self):
        self.assertEqual(_eval("10^400"), math.inf)


class TestEvalErrors(unittest.TestCase):
    """Test evaluation failures."""

    def test_unbound_variable(self):
        expr = compile_expression("x1 + x2")
        with self.assertRaises(EvalError) as ctx:
            expr.evaluate({"x1": 1.0})
        self.assertEqual(ctx.exception.code, "UNBOUND_VARIABLE")
        self.assertIn("x2", str(ctx.exception))

    def test_operator_without_operands(self):
        with self.assertRaises(EvalError) as ctx:
            evaluate([Token(NUMBER, 1.0), Token(OPERATOR, "+")], {})
        self.assertEqual(ctx.exception.code, "MALFORMED_EXPRESSION")

    def test_leftover_operands(self):
        with self.assertRaises(EvalError) as ctx:
            evaluate([Token(NUMBER, 1.0), Token(NUMBER, 2.0)], {})
        self.assertEqual(ctx.exception.code, "MALFORMED_EXPRESSION")

    def test_empty_postfix(self):
        with self.assertRaises(EvalError) as ctx:
            evaluate([], {})
        self.assertEqual(ctx.exception.code, "MALFORMED_EXPRESSION")


@pytest.mark.parametrize(
    "text",
    [
        "x1^2 + 3*x2 - x1/x2",
        "(x1+x2)^3/(x1*x2+1)",
        "x1-x2-x3",
        "x1/x2/x3",
        "2*x3^2^2 - (x1 - 0.5)*(x2 + 1.25)",
    ],
)
def test_matches_sympy(text):
    """The stack evaluator agrees with SymPy on the same parse."""
    expr = compile_expression(text)
    point = {"x1": 1.5, "x2": -2.0, "x3": 0.25}
    symbolic = to_sympy(expr)
    expected = float(
        symbolic.subs({sp.Symbol(name, real=True): point[name] for name in expr.variables})
    )
    assert expr.evaluate(point) == pytest.approx(expected, rel=1e-12)


if __name__ == "__main__":
    unittest.main()
