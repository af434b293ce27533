"""Test error codes raised by the optimization service."""

import unittest
from unittest import mock

from optimizator_pkg import service
from optimizator_pkg.types import (
    DidNotConvergeError,
    EvalError,
    InvalidFunctionError,
    OptimizationError,
    OptimizationQuery,
    ParseError,
)


class TestServiceErrors(unittest.TestCase):
    """Test that service.optimize raises the right error types and codes."""

    def test_invalid_function_wraps_parse_error(self):
        with self.assertRaises(InvalidFunctionError) as ctx:
            service.optimize("x1+(x2", 1e-6, 100)
        error = ctx.exception
        self.assertEqual(error.code, "INVALID_FUNCTION")
        self.assertIsInstance(error.parse_error, ParseError)
        self.assertEqual(error.parse_error.code, "UNBALANCED_PARENTHESES")
        self.assertIs(error.__cause__, error.parse_error)
        self.assertIsInstance(error, OptimizationError)

    def test_empty_function(self):
        with self.assertRaises(InvalidFunctionError) as ctx:
            service.optimize("", 1e-6, 100)
        self.assertEqual(ctx.exception.parse_error.code, "EMPTY_EXPRESSION")

    def test_invalid_function_runs_no_iterations(self):
        with mock.patch.object(service, "optimize_expression") as optimizer:
            with self.assertRaises(InvalidFunctionError):
                service.optimize("x1 + sin(x2)", 1e-6, 100)
            optimizer.assert_not_called()

    def test_did_not_converge(self):
        with self.assertRaises(DidNotConvergeError) as ctx:
            service.optimize("x1^2+x2^2", 1e-6, 1)
        error = ctx.exception
        self.assertEqual(error.code, "DID_NOT_CONVERGE")
        self.assertFalse(error.transient)
        self.assertEqual(len(error.best_point), 2)
        self.assertIn("1 iterations", str(error))

    def test_invalid_query(self):
        for tolerance, max_iterations in ((0, 10), (1e-6, 0), (1e-6, 2.5), (True, 10)):
            with self.assertRaises(OptimizationError) as ctx:
                service.optimize("x1^2", tolerance, max_iterations)
            self.assertEqual(ctx.exception.code, "INVALID_QUERY")

    def test_eval_error_reported_as_internal(self):
        with mock.patch.object(
            service,
            "optimize_expression",
            side_effect=EvalError("No value for variable 'x1'", "UNBOUND_VARIABLE"),
        ):
            with self.assertLogs("optimizator.service", level="ERROR"):
                with self.assertRaises(OptimizationError) as ctx:
                    service.optimize("x1^2", 1e-6, 100)
        self.assertEqual(ctx.exception.code, "INTERNAL_ERROR")
        self.assertIsInstance(ctx.exception.__cause__, EvalError)

    def test_run_query_reply(self):
        reply = service.run_query(OptimizationQuery("(x1-2)^2", 1e-12, 1000))
        self.assertEqual([v.name for v in reply.variables], ["x1"])
        self.assertAlmostEqual(reply.variables[0].value, 2.0, places=3)
        self.assertAlmostEqual(reply.as_assignment()["x1"], 2.0, places=3)
        self.assertEqual(reply.history, [])

    def test_query_from_dict(self):
        query = OptimizationQuery.from_dict(
            {"function": "x1^2", "tolerance": 1e-6, "iter": 50}
        )
        self.assertEqual(query, OptimizationQuery("x1^2", 1e-6, 50))


if __name__ == "__main__":
    unittest.main()
