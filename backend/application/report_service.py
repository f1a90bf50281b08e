"""Report Runner: validates parameters and executes one named report."""
from __future__ import annotations

import logging
import threading
import time
from contextlib import nullcontext
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.config import AppConfig
from application.custom_reports import custom_report_definitions
from application.inventory_reports import INVENTORY_REPORTS
from application.report_params import ReportParams, parse_params
from application.sales_reports import SALES_REPORTS
from application.staffing_reports import STAFFING_REPORTS
from domain.errors import ReportConfigError, ReportValidationError, UnknownReportError
from domain.report import ReportDefinition, Row
from infrastructure.database import read_only_session

logger = logging.getLogger(__name__)

DEFAULT_MAX_LIMIT = 100
BUILTIN_REPORTS = (*STAFFING_REPORTS, *SALES_REPORTS, *INVENTORY_REPORTS)


class ReportRunner:
    """Executes named, read-only reports against one database.

    Every call opens its own read-only session. On a single shared connection
    (in-memory SQLite, ``StaticPool``) calls from several threads run one at a
    time, since read-only mode is a property of that connection.
    """

    def __init__(self, config: AppConfig, engine: Engine):
        self.config = config
        self.engine = engine
        self._reports: Dict[str, ReportDefinition] = {}
        self._serial = threading.Lock() if isinstance(engine.pool, StaticPool) else nullcontext()
        for definition in BUILTIN_REPORTS:
            self._register(definition)
        for definition in custom_report_definitions(config.custom_reports):
            if definition.name in self._reports:
                raise ReportConfigError(f"Custom report '{definition.name}' clashes with a built-in report")
            self._register(definition)

    def _register(self, definition: ReportDefinition) -> None:
        self._reports[definition.name] = definition

    @property
    def max_limit(self) -> int:
        return int(self.config.sales.get("max_limit", DEFAULT_MAX_LIMIT))

    # Catalogue ------------------------------------------------------------
    def available(self) -> List[ReportDefinition]:
        return sorted(self._reports.values(), key=lambda item: (item.category.value, item.name))

    def describe(self, name: str) -> ReportDefinition:
        definition = self._reports.get(name)
        if definition is None:
            raise UnknownReportError(name)
        return definition

    # Execution ------------------------------------------------------------
    def validate(
        self, name: str, params: "ReportParams | Mapping[str, Any] | None" = None
    ) -> Tuple[ReportDefinition, ReportParams]:
        definition = self.describe(name)
        parsed = parse_params(params)

        if parsed.threshold is not None:
            if not definition.takes_threshold:
                raise ReportValidationError(f"Report '{name}' does not take a threshold")
            if not definition.threshold_in_range(parsed.threshold):
                low, high = definition.threshold_range
                bracket = "(" if definition.threshold_exclusive_low else "["
                raise ReportValidationError(
                    f"Threshold {parsed.threshold:g} for '{name}' is outside {bracket}{low:g}, {high:g}]"
                )

        if parsed.limit is not None:
            if not definition.uses_limit:
                raise ReportValidationError(f"Report '{name}' does not take a limit")
            if parsed.limit > self.max_limit:
                raise ReportValidationError(
                    f"Limit {parsed.limit} for '{name}' exceeds the maximum of {self.max_limit}"
                )

        return definition, parsed

    def run(self, name: str, params: "ReportParams | Mapping[str, Any] | None" = None) -> List[Row]:
        """Run report ``name`` and return its rows in report order."""
        definition, parsed = self.validate(name, params)
        started = time.perf_counter()
        with self._serial, read_only_session(self.engine) as session:
            rows = definition.handler(session, parsed, self.config)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("Report %s returned %d rows in %.1f ms", name, len(rows), elapsed_ms)
        return rows
