"""Main entry point for running optimizator_pkg as a module.

This allows running Optimizator with:
    python -m optimizator_pkg -f "x1^2 + x2^2"
    python -m optimizator_pkg --health-check
    python -m optimizator_pkg --batch queries.jsonl --format json

This is equivalent to running:
    python -m optimizator_pkg.cli
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
