"""Console entry point for the coffee shop reports."""
from __future__ import annotations

import sys

from interfaces.cli import main as cli_main


def main() -> None:
    sys.exit(cli_main())


if __name__ == "__main__":  # pragma: no cover - runtime wiring
    main()
