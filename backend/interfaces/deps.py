"""Runner wiring shared by the command line and library callers."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Mapping, Optional

from app.config import AppConfig, get_settings
from application.report_params import ReportParams
from application.report_service import ReportRunner
from domain.report import Row
from infrastructure.database import create_db_engine


def build_runner(
    settings: Optional[AppConfig] = None,
    database_url: Optional[str] = None,
) -> ReportRunner:
    """Create a runner over ``database_url`` (default: the configured database)."""
    settings = settings or get_settings()
    url = database_url or settings.database_url
    engine = create_db_engine(url, echo=bool(settings.database.get("echo", False)))
    return ReportRunner(settings, engine)


@lru_cache(maxsize=1)
def get_runner() -> ReportRunner:
    return build_runner()


def run_report(name: str, params: "ReportParams | Mapping[str, Any] | None" = None) -> List[Row]:
    """Run a report through the process-wide runner."""
    return get_runner().run(name, params)


def reset() -> None:
    """Forget cached settings and the shared runner, e.g. after the environment changed."""
    get_settings.cache_clear()
    get_runner.cache_clear()
