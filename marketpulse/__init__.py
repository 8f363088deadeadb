"""Market Pulse package bootstrap.

Feed ranking, deduplication, category gating and the drop-banner queue live
in dedicated modules; ``main`` wires them into a command-line runner.

Updates: v0.1 - 2026-10-19 - Created package scaffold.
"""

from .main import main

__all__ = ["main"]
