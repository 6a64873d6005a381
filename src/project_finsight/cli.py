# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Project FinSight.

This module wires together the main building blocks of Project FinSight:

- global configuration (database, report and display options),
- CSV import of projects, suppliers, invoices and closing documents,
- report generation (report_service) and HTML export (render),
- tabular views for the console and CSV export (views).

The CLI is intentionally thin: it does not implement any financial logic
itself. It orchestrates the underlying modules based on command-line
arguments and the configuration file.

Commands
--------

- ``import KIND CSV_PATH``
    Import records from a CSV file into the database. KIND is one of
    projects, suppliers, invoices, documents, department-invoices.

- ``projects list``
    List the projects stored in the database (compact amounts).

- ``report PROJECT_ID``
    Build the financial report of a project. Depending on the display
    mode, print the report tables, export the standalone HTML document,
    or both. ``--csv`` additionally exports the report tables as CSV files.

- ``departments summary``
    Print the department spend summary per category.

Output files
------------
HTML reports are written as ``financial-report-project-<number or id>.html``.
CSV exports carry a timestamp:

    data/output/report_<project>_summary_YYYY-MM-DD-HH-MM-SS.csv
    data/output/report_<project>_invoices_YYYY-MM-DD-HH-MM-SS.csv
    data/output/report_<project>_suppliers_YYYY-MM-DD-HH-MM-SS.csv

Exit codes
----------
0 on success, 1 when the requested project does not exist or the report
cannot be produced, 2 on invalid usage (argparse).
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import __version__
from .config import DISPLAY_MODES, AppConfig, load_app_config
from .db import (
    init_database,
    list_department_invoices,
    list_projects,
    upsert_closing_documents,
    upsert_department_invoices,
    upsert_invoices,
    upsert_projects,
    upsert_suppliers,
)
from .departments import aggregate_department_spend
from .errors import NotFoundError, ReportGenerationError
from .io import (
    read_closing_documents,
    read_department_invoices,
    read_invoices,
    read_projects,
    read_suppliers,
)
from .render import format_currency, format_percent
from .report import ProjectReportData
from .report_service import export_report, generate_project_report
from .views import (
    financial_summary_to_dataframe,
    invoices_to_dataframe,
    projects_to_dataframe,
    supplier_spend_to_dataframe,
)

logger = logging.getLogger(__name__)

# kind -> (reader, writer, label)
IMPORTERS = {
    "projects": (read_projects, upsert_projects, "projects"),
    "suppliers": (read_suppliers, upsert_suppliers, "suppliers"),
    "invoices": (read_invoices, upsert_invoices, "invoices"),
    "documents": (read_closing_documents, upsert_closing_documents, "closing documents"),
    "department-invoices": (
        read_department_invoices,
        upsert_department_invoices,
        "department invoices",
    ),
}


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m project_finsight.cli",
        description=(
            "Project FinSight - Financial Reporting for Project Dashboards. "
            "Imports projects, invoices and closing documents, computes "
            "plan/actual financial summaries and renders project reports."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of project_finsight and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. If omitted, "
            "'project_finsight_config.toml' in the current directory is used."
        ),
    )

    ap.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the log level defined in [logging] of the configuration.",
    )

    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Subcommand to run: import, projects, report, departments.",
    )

    # ------------------------------------------------------------------
    # import
    # ------------------------------------------------------------------
    import_parser = subparsers.add_parser(
        "import",
        help="Import records from a CSV file into the database.",
    )
    import_parser.add_argument(
        "kind",
        choices=sorted(IMPORTERS),
        help="Type of records contained in the CSV file.",
    )
    import_parser.add_argument(
        "csv_path",
        metavar="CSV_PATH",
        help="Path to the CSV file to import.",
    )

    # ------------------------------------------------------------------
    # projects list
    # ------------------------------------------------------------------
    projects_parser = subparsers.add_parser(
        "projects",
        help="Inspect the projects stored in the database.",
    )
    projects_subparsers = projects_parser.add_subparsers(
        dest="projects_command",
        metavar="projects-command",
        help="Projects subcommands (e.g. 'list').",
    )
    projects_subparsers.add_parser("list", help="List all projects.")

    # ------------------------------------------------------------------
    # report
    # ------------------------------------------------------------------
    report_parser = subparsers.add_parser(
        "report",
        help="Build the financial report of a project.",
    )
    report_parser.add_argument(
        "project_id",
        metavar="PROJECT_ID",
        help="Identifier of the project.",
    )
    report_parser.add_argument(
        "--output-dir",
        dest="output_dir",
        help=(
            "Directory where the HTML report and CSV files are written. "
            "If omitted, [report].output_dir of the configuration is used."
        ),
    )
    report_parser.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=DISPLAY_MODES,
        help=(
            "'table' prints the report in the console, 'html' exports the "
            "standalone HTML document, 'both' does both. "
            "Defaults to [display].mode."
        ),
    )
    report_parser.add_argument(
        "--csv",
        action="store_true",
        help="Also export the report tables as CSV files.",
    )

    # ------------------------------------------------------------------
    # departments summary
    # ------------------------------------------------------------------
    departments_parser = subparsers.add_parser(
        "departments",
        help="Inspect department invoices.",
    )
    departments_subparsers = departments_parser.add_subparsers(
        dest="departments_command",
        metavar="departments-command",
        help="Departments subcommands (e.g. 'summary').",
    )
    departments_subparsers.add_parser(
        "summary",
        help="Print spend per primary/secondary category.",
    )

    return ap


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _handle_import(args: argparse.Namespace, config: AppConfig) -> int:
    """Handle the 'import' subcommand."""
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        print(f"Error: CSV file not found: {csv_path}")
        return 1

    reader, writer, label = IMPORTERS[args.kind]

    print(f"Importing {label} from {csv_path} into the database...")
    try:
        records = reader(csv_path)
    except ValueError as exc:
        print(f"Error while reading {csv_path}: {exc}")
        return 1

    count = writer(config.database, records)
    print(f"Imported {count} {label}.")
    return 0


def _handle_projects(args: argparse.Namespace, config: AppConfig) -> int:
    """Handle the 'projects' subcommands."""
    if getattr(args, "projects_command", None) != "list":
        print("No projects subcommand specified. Available subcommands are: 'list'.")
        return 1

    projects = list_projects(config.database)
    if not projects:
        print("No projects found. Use 'import projects CSV_PATH' to load some.")
        return 0

    df = projects_to_dataframe(projects, config.report.currency)
    print(df.to_string(index=False))
    return 0


def _print_report(report: ProjectReportData, currency: str) -> None:
    """Print the report tables in the console."""
    project = report.project
    summary = report.invoice_summary

    print(f"=== Financial report: {project.name or project.id} ===")
    print(f"Number:   {project.number or 'N/A'}")
    print(f"Customer: {project.customer or 'N/A'}")
    print()

    summary_df = financial_summary_to_dataframe(report)
    print(summary_df.to_string(index=False))

    print()
    print(
        f"Invoices: {summary.total_count} "
        f"(overdue: {summary.overdue_count}, "
        f"pending payment: {format_currency(summary.pending_amount, currency)}, "
        f"without closing documents: {report.missing_documents_count})"
    )
    if report.invoices:
        print(invoices_to_dataframe(report).to_string(index=False))

    if report.supplier_spend:
        print()
        print("Spend by supplier:")
        print(supplier_spend_to_dataframe(report).to_string(index=False))

    margin = report.financial_summary.actual_margin
    print()
    print(f"Gross margin (actual): {format_percent(margin)}")


def _export_report_csv(report: ProjectReportData, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    key = report.project.number or report.project.id

    path = output_dir / f"report_{key}_summary_{timestamp}.csv"
    financial_summary_to_dataframe(report).to_csv(path, index=False)
    print(f"Summary written to: {path}")

    path = output_dir / f"report_{key}_invoices_{timestamp}.csv"
    invoices_to_dataframe(report).to_csv(path, index=False)
    print(f"Invoices written to: {path}")

    path = output_dir / f"report_{key}_suppliers_{timestamp}.csv"
    supplier_spend_to_dataframe(report).to_csv(path, index=False)
    print(f"Supplier spend written to: {path}")


def _handle_report(args: argparse.Namespace, config: AppConfig) -> int:
    """
    Handle the 'report' subcommand.

    The report is built once from a fresh snapshot; the console tables, the
    HTML document and the CSV files are all produced from that same value.
    """
    display_mode = args.display_mode or config.display_mode
    output_dir = Path(args.output_dir) if args.output_dir else config.report.output_dir

    try:
        report = generate_project_report(config, args.project_id)
    except NotFoundError as exc:
        print(f"Error: project not found: {exc.record_id}")
        return 1
    except ReportGenerationError as exc:
        logger.error("Report generation failed", exc_info=exc.__cause__)
        print(f"Error: {exc}")
        return 1

    if display_mode in ("table", "both"):
        _print_report(report, config.report.currency)

    if display_mode in ("html", "both"):
        try:
            path = export_report(config, report, output_dir)
        except ReportGenerationError as exc:
            print(f"Error: {exc}")
            return 1
        print(f"HTML report written to: {path}")

    if args.csv:
        _export_report_csv(report, output_dir)

    return 0


def _handle_departments(args: argparse.Namespace, config: AppConfig) -> int:
    """Handle the 'departments' subcommands."""
    if getattr(args, "departments_command", None) != "summary":
        print(
            "No departments subcommand specified. "
            "Available subcommands are: 'summary'."
        )
        return 1

    invoices = list_department_invoices(config.database)
    if not invoices:
        print("No department invoices found.")
        return 0

    df = aggregate_department_spend(invoices)
    print(df.to_string(index=False))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the Project FinSight CLI.

    This function parses command-line arguments, loads the application
    configuration, configures logging, initializes the database and
    dispatches to the requested subcommand.

    Returns the process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"project_finsight version {__version__}")
        return 0

    # 1) Load application configuration
    try:
        if args.config_path:
            config = load_app_config(args.config_path)
        else:
            config = load_app_config()
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error while loading configuration: {exc}")
        return 1

    # 2) Logging: CLI override first, then [logging].level
    _configure_logging(args.log_level or config.log_level)

    # 3) Initialize the database (create file and schema if needed)
    init_database(config.database)

    command = getattr(args, "command", None)
    if command == "import":
        return _handle_import(args, config)
    if command == "projects":
        return _handle_projects(args, config)
    if command == "report":
        return _handle_report(args, config)
    if command == "departments":
        return _handle_departments(args, config)

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
