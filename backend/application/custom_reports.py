"""Reports defined as SQL text in the configuration file."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from sqlalchemy import text
from sqlmodel import Session

from app.config import AppConfig
from application.report_params import ReportParams
from domain.errors import ReportConfigError
from domain.report import ReportCategory, ReportDefinition, Row
from infrastructure.sql_guard import validate_read_only_sql

BIND_NAMES = frozenset({"start", "end", "threshold", "limit"})


def _bind_values(params: ReportParams) -> Dict[str, Any]:
    return {
        "start": params.start.isoformat() if params.start else None,
        "end": params.end.isoformat() if params.end else None,
        "threshold": params.threshold,
        "limit": params.limit,
    }


def make_sql_handler(name: str, sql: str):
    """Handler executing ``sql`` with the report parameters bound by name."""
    validate_read_only_sql(sql)
    statement = text(sql)
    wanted = set(statement.compile().params)
    unknown = wanted - BIND_NAMES
    if unknown:
        raise ReportConfigError(
            f"Report '{name}' uses unsupported bind parameters: {', '.join(sorted(unknown))}"
        )

    def handler(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
        values = {key: value for key, value in _bind_values(params).items() if key in wanted}
        result = session.connection().execute(statement, values)
        return [dict(row._mapping) for row in result]

    return handler, wanted


def custom_report_definitions(entries: Mapping[str, Any]) -> List[ReportDefinition]:
    definitions: List[ReportDefinition] = []
    for name, entry in entries.items():
        if not isinstance(entry, Mapping) or not entry.get("sql"):
            raise ReportConfigError(f"Custom report '{name}' must define 'sql'")
        handler, wanted = make_sql_handler(name, str(entry["sql"]))
        definitions.append(
            ReportDefinition(
                name=str(name),
                title=str(entry.get("title", name)),
                category=ReportCategory.CUSTOM,
                description=str(entry.get("description", "")),
                columns=tuple(entry.get("columns") or ()),
                handler=handler,
                threshold_range=(float("-inf"), float("inf")) if "threshold" in wanted else None,
                uses_limit="limit" in wanted,
            )
        )
    return definitions
