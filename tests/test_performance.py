"""Performance tests and benchmarks for Optimizator.

These tests are marked as 'slow' and can be skipped with: pytest -m "not slow"
"""

import time

import pytest

from optimizator_pkg.api import optimize
from optimizator_pkg.parser import compile_expression


@pytest.mark.slow
class TestCompilePerformance:
    """Test compilation performance."""

    def test_simple_expression_compile_time(self):
        start = time.time()
        for _ in range(1000):
            compile_expression("x1^2 + 2*x1*x2 + x2^2 - (x3 - 1)/(x4 + 2)")
        elapsed = time.time() - start
        assert elapsed < 2.0, f"Compilation too slow: {elapsed}s"

    def test_evaluation_time(self):
        expr = compile_expression("(1-x1)^2 + 100*(x2-x1^2)^2")
        start = time.time()
        for i in range(10000):
            expr((i * 0.001, 1.0))
        elapsed = time.time() - start
        assert elapsed < 5.0, f"Evaluation too slow: {elapsed}s"


@pytest.mark.slow
class TestOptimizationPerformance:
    """Test end-to-end optimization time."""

    def test_four_dimensional_sphere(self):
        start = time.time()
        result = optimize("x1^2 + x2^2 + x3^2 + x4^2", 1e-8, 5000)
        elapsed = time.time() - start
        assert result.ok, result
        assert result.function_value < 1e-4
        assert elapsed < 10.0, f"Optimization too slow: {elapsed}s"
