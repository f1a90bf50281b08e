"""Configuration loader that keeps all report constants centralized."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from domain.errors import ReportConfigError


CONFIG_PATH = Path(__file__).resolve().parent / "app_config.yaml"
CONFIG_ENV = "COFFEE_REPORTS_CONFIG"
DATABASE_URL_ENV = "COFFEE_REPORTS_DATABASE_URL"


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed wrapper over the raw YAML document."""

    raw: Dict[str, Any]

    @property
    def version(self) -> str:
        return str(self.raw.get("version", "v1"))

    @property
    def database(self) -> Dict[str, Any]:
        return self.raw.get("database") or {}

    @property
    def database_url(self) -> str:
        return os.environ.get(DATABASE_URL_ENV) or str(
            self.database.get("url", "sqlite:///coffee_shop.db")
        )

    @property
    def staffing(self) -> Dict[str, Any]:
        return self.raw.get("staffing") or {}

    @property
    def sales(self) -> Dict[str, Any]:
        return self.raw.get("sales") or {}

    @property
    def inventory(self) -> Dict[str, Any]:
        return self.raw.get("inventory") or {}

    @property
    def custom_reports(self) -> Dict[str, Any]:
        return self.raw.get("custom_reports") or {}

    @property
    def logging(self) -> Dict[str, Any]:
        return self.raw.get("logging") or {}


def load_settings(path: Path) -> AppConfig:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ReportConfigError(f"Configuration file {path} must define a mapping at the top level.")
    return AppConfig(raw=data)


@lru_cache(maxsize=1)
def get_settings(path: Path | None = None) -> AppConfig:
    """Load configuration once per process."""

    config_path = path or os.environ.get(CONFIG_ENV) or CONFIG_PATH
    return load_settings(Path(config_path))
