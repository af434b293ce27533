"""Centralized configuration for Optimizator.

This module defines:
- Nelder-Mead coefficients and the fixed starting simplex
- Default tolerance and iteration budget
- Input validation limits
- Worker pool sizing and timeouts
- Token regexes and the operator precedence table

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with OPTIMIZATOR_)
"""

import os
import re

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("optimizator")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Nelder-Mead coefficients
ALPHA = float(os.getenv("OPTIMIZATOR_ALPHA", "1.0"))  # reflection
GAMMA = float(os.getenv("OPTIMIZATOR_GAMMA", "2.0"))  # expansion
RHO = float(os.getenv("OPTIMIZATOR_RHO", "0.5"))  # contraction
SIGMA = float(os.getenv("OPTIMIZATOR_SIGMA", "0.5"))  # shrink

# Starting simplex: every coordinate of vertex 0 is START_VALUE, vertex i adds
# INITIAL_STEP to coordinate i-1
START_VALUE = float(os.getenv("OPTIMIZATOR_START_VALUE", "1.0"))
INITIAL_STEP = float(os.getenv("OPTIMIZATOR_INITIAL_STEP", "0.1"))

# Defaults used when a caller omits tolerance/iterations (CLI only)
DEFAULT_TOLERANCE = float(os.getenv("OPTIMIZATOR_DEFAULT_TOLERANCE", "1e-6"))
DEFAULT_MAX_ITERATIONS = int(os.getenv("OPTIMIZATOR_DEFAULT_MAX_ITERATIONS", "1000"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("OPTIMIZATOR_MAX_INPUT_LENGTH", "10000"))  # characters

# Output
OUTPUT_PRECISION = int(os.getenv("OPTIMIZATOR_OUTPUT_PRECISION", "6"))

# Worker configuration
WORKER_POOL_SIZE = int(
    os.getenv("OPTIMIZATOR_WORKER_POOL_SIZE", "4")
)  # Number of parallel optimization threads
WORKER_TIMEOUT = float(os.getenv("OPTIMIZATOR_WORKER_TIMEOUT", "60"))  # seconds per job

# Operators and their binding strength
PRECEDENCE = {
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "^": 3,
}
OPERATORS = frozenset(PRECEDENCE)

# All operators are left-associative, including "^": 2^3^2 == (2^3)^2 == 64.
# Flipping this makes "^" right-associative (2^3^2 == 2^9 == 512).
EXPONENT_RIGHT_ASSOCIATIVE = (
    os.getenv("OPTIMIZATOR_EXPONENT_RIGHT_ASSOCIATIVE", "false").lower() == "true"
)

# Lexemes are ASCII only. "2.5e3" is a number; "1e-3" is not, since "-" always separates.
SEPARATOR_REGEX = re.compile(r"([+\-*/^()])", re.ASCII)
WHITESPACE_REGEX = re.compile(r"\s+", re.ASCII)
NUMBER_REGEX = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)(?:e\d+)?$", re.ASCII)
VARIABLE_REGEX = re.compile(r"^x\d+$", re.ASCII)
