"""Package command-line entrypoint.

Enables running the pipeline with:

    python -m marketpulse feed.json

or, once installed (via the console-script declared in *pyproject.toml*), simply:

    marketpulse feed.json
"""

from __future__ import annotations

import sys

from .main import main


def _run() -> None:  # pragma: no cover - thin wrapper
    """Invoke :pyfunc:`marketpulse.main.main` and exit with its status."""

    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    _run()
