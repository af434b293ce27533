"""Optimizator package: expression compiler, Nelder-Mead optimizer, worker pool and CLI."""

__all__ = [
    "config",
    "parser",
    "evaluator",
    "optimizer",
    "service",
    "worker",
    "cli",
    "types",
    "api",
    "formatting",
    "plotting",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "optimize",
    "run",
    "validate_function",
    "evaluate_function",
    "describe_function",
]
