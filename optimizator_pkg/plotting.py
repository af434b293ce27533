"""Optional convergence plots for optimization runs."""

from __future__ import annotations

import math
import os
import tempfile
from collections.abc import Sequence

try:
    # Set non-GUI backend before importing pyplot to avoid Tkinter issues
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from .logging_config import get_logger

logger = get_logger("plotting")


def ascii_convergence(history: Sequence[float], width: int = 60, height: int = 15) -> str:
    """Render best value per iteration as a text chart.

    Args:
        history: Best objective value after each iteration (index 0 is the start)
        width: Number of columns
        height: Number of rows

    Returns:
        Multi-line string
    """
    finite = [v for v in history if math.isfinite(v)]
    if not finite:
        return "(no finite values to plot)"
    lo, hi = min(finite), max(finite)
    span = hi - lo or 1.0
    columns = min(width, len(history))
    grid = [[" "] * columns for _ in range(height)]
    for col in range(columns):
        idx = col * (len(history) - 1) // max(columns - 1, 1)
        value = history[idx]
        if not math.isfinite(value):
            continue
        row = int(round((hi - value) / span * (height - 1)))
        grid[row][col] = "*"
    lines = ["".join(r) for r in grid]
    lines[0] = f"{lines[0]}  {hi:.6g}"
    lines[-1] = f"{lines[-1]}  {lo:.6g}"
    lines.append(f"iterations: 0..{len(history) - 1}")
    return "\n".join(lines)


def plot_convergence(
    history: Sequence[float],
    path: str | None = None,
    title: str = "Nelder-Mead convergence",
    ascii: bool = False,
) -> str:
    """Plot best objective value per iteration.

    Uses a log scale when every value is positive.

    Args:
        history: Best objective value after each iteration
        path: PNG output path (a temporary file when None)
        title: Plot title
        ascii: Return an ASCII chart instead of writing a PNG

    Returns:
        The ASCII chart, or the path of the written PNG

    Raises:
        RuntimeError: matplotlib is not installed and ascii is False
        ValueError: history is empty
    """
    if not history:
        raise ValueError("history is empty")
    if ascii:
        return ascii_convergence(history)
    if not HAS_MATPLOTLIB:
        raise RuntimeError("matplotlib not installed. Use ascii=True for ASCII plot.")

    if path is None:
        fd, path = tempfile.mkstemp(prefix="optimizator_", suffix=".png")
        os.close(fd)

    fig, ax = plt.subplots(figsize=(8, 5))
    try:
        ax.plot(range(len(history)), list(history), marker=".", linewidth=1.5)
        if all(math.isfinite(v) and v > 0 for v in history):
            ax.set_yscale("log")
        ax.set_xlabel("iteration")
        ax.set_ylabel("best f")
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
        fig.tight_layout()
        fig.savefig(path, dpi=100)
    finally:
        plt.close(fig)
    logger.info(f"Convergence plot saved to {path}")
    return path
