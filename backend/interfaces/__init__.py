from .deps import build_runner, run_report

__all__ = [
    "build_runner",
    "run_report",
]
