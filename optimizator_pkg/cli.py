from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from .api import describe_function, run
from .config import (
    ALPHA,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    GAMMA,
    INITIAL_STEP,
    OUTPUT_PRECISION,
    RHO,
    SIGMA,
    START_VALUE,
    VERSION,
    WORKER_POOL_SIZE,
    WORKER_TIMEOUT,
)
from .formatting import format_result
from .logging_config import get_logger, setup_logging
from .optimizer import NelderMeadParams
from .plotting import plot_convergence
from .types import OptimizationQuery, OptimizationResult, ParseError
from .worker import optimize_many

logger = get_logger("cli")

EXIT_OK = 0
EXIT_INVALID_INPUT = 1
EXIT_DID_NOT_CONVERGE = 2
EXIT_FAILURE = 3

_EXIT_CODES = {
    "INVALID_FUNCTION": EXIT_INVALID_INPUT,
    "INVALID_QUERY": EXIT_INVALID_INPUT,
    "DID_NOT_CONVERGE": EXIT_DID_NOT_CONVERGE,
}


def exit_code_for(result: OptimizationResult) -> int:
    if result.ok:
        return EXIT_OK
    return _EXIT_CODES.get(result.error_code, EXIT_FAILURE)


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print("Running Optimizator health check...")
    print("-" * 50)

    try:
        import numpy

        print(f"[OK] NumPy {numpy.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] NumPy import failed: {e}")
        checks_failed += 1

    try:
        import sympy

        print(f"[OK] SymPy {sympy.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] SymPy import failed: {e}")
        checks_failed += 1

    try:
        from .api import evaluate_function

        value = evaluate_function("2+3*4", {})
        if value == 14.0:
            print("[OK] Expression compiler works")
            checks_passed += 1
        else:
            print(f"[FAIL] Expression compiler: expected 14, got {value}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Expression compiler check failed: {e}")
        checks_failed += 1

    try:
        from .api import optimize

        result = optimize("(x1-2)^2 + (x2+1)^2", 1e-10, 2000)
        if result.ok and abs(result.function_value) < 1e-4:
            print("[OK] Nelder-Mead optimizer works")
            checks_passed += 1
        else:
            print(f"[FAIL] Optimizer check failed: {result}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Optimizer check failed: {e}")
        checks_failed += 1

    try:
        import matplotlib

        print(f"[OK] Matplotlib {matplotlib.__version__} available")
        checks_passed += 1
    except ImportError:
        print("[WARN] Matplotlib not available (only --ascii-plot works)")
        print("  To install: pip install matplotlib")

    print("-" * 50)
    print(f"Results: {checks_passed} passed, {checks_failed} failed")

    if checks_failed > 0:
        print("\n[WARN] Some health checks failed. Core functionality may be impaired.")
        return 1

    print("\n[OK] All health checks passed!")
    return 0


def print_result(
    result: OptimizationResult,
    output_format: str = "human",
    precision: int = OUTPUT_PRECISION,
    truncate: bool = False,
) -> None:
    """Print result in specified format.

    Args:
        result: Result of one optimization
        output_format: "json" for JSON output, "human" for human-readable
        precision: Significant digits in human output
        truncate: Show coordinates as integers in human output
    """
    if output_format == "json":
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    print(format_result(result, precision=precision, truncate=truncate))


def _read_batch(path: str) -> list[OptimizationQuery]:
    """Read one JSON object per line: {"function": ..., "tolerance": ..., "max_iterations": ...}."""
    queries = []
    stream = sys.stdin if path == "-" else open(path, encoding="utf-8")
    try:
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                data: Any = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"line {lineno}: invalid JSON ({e.msg})") from e
            if not isinstance(data, dict):
                raise ValueError(f"line {lineno}: expected a JSON object")
            queries.append(OptimizationQuery.from_dict(data))
    finally:
        if stream is not sys.stdin:
            stream.close()
    return queries


def _run_batch(args: argparse.Namespace, params: NelderMeadParams) -> int:
    try:
        queries = _read_batch(args.batch)
    except (OSError, ValueError) as e:
        print(f"Error: cannot read batch file: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    results = optimize_many(
        queries, max_workers=args.workers, timeout=args.timeout, params=params
    )
    worst = EXIT_OK
    for query, result in zip(queries, results):
        if args.format == "json":
            print(json.dumps({"function": query.function, **result.to_dict()}))
        else:
            print(f"{query.function}")
            print(format_result(result, precision=args.precision, truncate=args.integer))
        worst = max(worst, exit_code_for(result))
    return worst


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for Optimizator CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code: 0 success, 1 invalid input, 2 did not converge,
        3 internal error, cancellation or timeout
    """
    parser = argparse.ArgumentParser(
        prog="optimizator",
        description="Minimize a function of x1, x2, ... with the Nelder-Mead method",
    )
    parser.add_argument(
        "-f", "--function", type=str, help='Function to minimize, e.g. "x1^2 + x2^2"'
    )
    parser.add_argument(
        "-t",
        "--tolerance",
        type=float,
        default=DEFAULT_TOLERANCE,
        help=f"Convergence tolerance on the simplex value spread (default: {DEFAULT_TOLERANCE})",
    )
    parser.add_argument(
        "-n",
        "--max-iter",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        dest="max_iter",
        help=f"Iteration budget (default: {DEFAULT_MAX_ITERATIONS})",
    )
    parser.add_argument(
        "--start",
        type=float,
        default=START_VALUE,
        help=f"Value of every coordinate of the starting point (default: {START_VALUE})",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=INITIAL_STEP,
        help=f"Initial simplex step (default: {INITIAL_STEP})",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p",
        "--precision",
        type=int,
        default=OUTPUT_PRECISION,
        help="Set output precision (significant digits)",
    )
    parser.add_argument(
        "--integer",
        action="store_true",
        help="Show optimum coordinates truncated to integers",
    )
    parser.add_argument(
        "--show-expr",
        action="store_true",
        help="Print the function as parsed before optimizing",
    )
    parser.add_argument("--plot", type=str, help="Save a convergence plot to this PNG file")
    parser.add_argument(
        "--ascii-plot", action="store_true", help="Print an ASCII convergence plot"
    )
    parser.add_argument(
        "--batch",
        type=str,
        help='Run queries from a JSON-lines file ("-" for stdin) concurrently',
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=WORKER_POOL_SIZE,
        help=f"Worker threads for --batch (default: {WORKER_POOL_SIZE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=WORKER_TIMEOUT,
        help=f"Per-query timeout in seconds for --batch (default: {WORKER_TIMEOUT})",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--trace-iterations",
        action="store_true",
        help="Log every Nelder-Mead iteration (with --log-level DEBUG)",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        trace_iterations=args.trace_iterations,
    )

    if args.version:
        print(VERSION)
        return EXIT_OK
    if args.health_check:
        return _health_check()

    try:
        params = NelderMeadParams(
            alpha=ALPHA,
            gamma=GAMMA,
            rho=RHO,
            sigma=SIGMA,
            initial_step=args.step,
            start_value=args.start,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if args.batch:
        return _run_batch(args, params)

    if not args.function or not args.function.strip():
        print("Error: Empty input. Pass a function with -f, e.g. -f \"x1^2 + x2^2\"")
        return EXIT_INVALID_INPUT

    if args.show_expr:
        try:
            print(f"f = {describe_function(args.function)}")
        except ParseError as e:
            logger.debug(f"Cannot describe {args.function!r}: {e}")
        except Exception as e:
            # Display only; the optimization below still runs
            logger.warning(f"Cannot render {args.function!r}: {e}", exc_info=True)

    wants_history = bool(args.plot or args.ascii_plot)
    result = run(
        OptimizationQuery(args.function, args.tolerance, args.max_iter),
        params=params,
        record_history=wants_history,
    )
    print_result(result, args.format, precision=args.precision, truncate=args.integer)

    if wants_history and result.ok and result.history:
        if args.ascii_plot:
            print(plot_convergence(result.history, ascii=True))
        if args.plot:
            try:
                path = plot_convergence(result.history, path=args.plot)
                print(f"Plot saved: {path}")
            except (RuntimeError, OSError) as e:
                print(f"Error: cannot save plot: {e}", file=sys.stderr)

    return exit_code_for(result)


if __name__ == "__main__":
    sys.exit(main_entry())
