"""Command line for listing and running reports.

Usage examples:

- List every report:
    `coffee-reports list`

- Weekly hours for January, as a table:
    `coffee-reports run weekly-hours --from 2024-01-01 --to 2024-01-31`

- Overtime at 30 hours against another database, as JSON:
    `coffee-reports --database-url sqlite:///shop.db run overtime-employees --threshold 30 --json`
"""
from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from app.config import get_settings, load_settings
from domain.errors import ReportError
from domain.report import ReportDefinition, Row
from interfaces.deps import build_runner

logger = logging.getLogger(__name__)

CONSOLE = Console()
ERR_CONSOLE = Console(stderr=True)

EXIT_OK = 0
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coffee-reports", description="Run read-only coffee shop reports"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--database-url", type=str, default=None, help="Override the configured database URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="List available reports")

    describe = commands.add_parser("describe", help="Show one report definition")
    describe.add_argument("name")

    run = commands.add_parser("run", help="Run a report")
    run.add_argument("name")
    run.add_argument("--from", dest="start", default=None, help="First day, YYYY-MM-DD (inclusive)")
    run.add_argument("--to", dest="end", default=None, help="Last day, YYYY-MM-DD (inclusive)")
    run.add_argument("--threshold", type=float, default=None)
    run.add_argument("--limit", type=int, default=None)
    run.add_argument("--json", action="store_true", help="Print rows as JSON")
    return parser


def _format(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def print_catalogue(definitions: Sequence[ReportDefinition]) -> None:
    table = Table(title="Reports", box=box.SIMPLE)
    table.add_column("name", style="bold cyan")
    table.add_column("category")
    table.add_column("params")
    table.add_column("description")
    for definition in definitions:
        params = ["from", "to"]
        if definition.takes_threshold:
            params.append("threshold")
        if definition.uses_limit:
            params.append("limit")
        table.add_row(definition.name, definition.category.value, ", ".join(params), definition.description)
    CONSOLE.print(table)


def print_definition(definition: ReportDefinition) -> None:
    lines = [
        f"[bold]{definition.title}[/] ({definition.category.value})",
        definition.description,
        f"columns: {', '.join(definition.columns) or '(from the query)'}",
    ]
    if definition.takes_threshold:
        low, high = definition.threshold_range
        lines.append(f"threshold: {low:g} .. {high:g}")
    if definition.uses_limit:
        lines.append("limit: yes")
    CONSOLE.print(Panel.fit("\n".join(lines), title=definition.name, border_style="blue"))


def print_rows(definition: ReportDefinition, rows: List[Row]) -> None:
    columns = list(definition.columns) or (list(rows[0].keys()) if rows else [])
    table = Table(title=definition.title, box=box.SIMPLE)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(_format(row.get(column)) for column in columns))
    CONSOLE.print(table)
    CONSOLE.print(f"[dim]{len(rows)} row(s)[/]")


def configure_logging(level: str, *, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, str(level).upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=ERR_CONSOLE, show_path=False)],
        force=True,
    )


def _fail(exc: ReportError) -> int:
    ERR_CONSOLE.print(f"[red]✘ {exc}[/]")
    return EXIT_INVALID


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(Path(args.config)) if args.config else get_settings()
    except ReportError as exc:
        return _fail(exc)
    configure_logging(settings.logging.get("level", "WARNING"), verbose=args.verbose)

    try:
        runner = build_runner(settings, database_url=args.database_url)
        logger.debug("Reporting against %s", runner.engine.url)
        if args.command == "list":
            print_catalogue(runner.available())
            return EXIT_OK

        definition = runner.describe(args.name)
        if args.command == "describe":
            print_definition(definition)
            return EXIT_OK

        params: Dict[str, Any] = {
            "from": args.start,
            "to": args.end,
            "threshold": args.threshold,
            "limit": args.limit,
        }
        rows = runner.run(args.name, params)
    except ReportError as exc:
        return _fail(exc)

    if args.json:
        CONSOLE.print_json(data=rows, default=str)
    else:
        print_rows(definition, rows)
    return EXIT_OK
