# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for project report generation.

This module sits between:
- the low-level database helpers in `db.py`, and
- user-facing layers such as the CLI.

It orchestrates one report request:

1) Snapshot
   - Load the project. A missing project aborts the request with
     NotFoundError before anything else is fetched.
   - Load the project's invoices and closing documents concurrently.
   - Resolve the suppliers referenced by the invoices with chunked batch
     lookups (at most 30 ids per lookup), also concurrently. A chunk that
     fails is logged and its suppliers stay unresolved: the report then
     shows the "unknown supplier" label instead of failing.

2) Composition
   - Hand the snapshot to ``report.build_report()``.

3) Export
   - Render the report to a standalone HTML document and write it to the
     output directory.

Every request reads a fresh snapshot. Nothing is cached between requests
and nothing computed here is written back to the database.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from .batching import batch_fetch
from .config import AppConfig
from .db import (
    batch_lookup as _db_batch_lookup,
)
from .db import (
    get_project as _db_get_project,
)
from .db import (
    query_closing_documents_by_project as _db_query_closing_documents,
)
from .db import (
    query_invoices_by_project as _db_query_invoices,
)
from .errors import NotFoundError, ReportGenerationError
from .models import ClosingDocument, Invoice, Project, Supplier
from .render import report_filename, write_report_document
from .report import ProjectReportData, build_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportSnapshot:
    """
    Records read for one report request.

    ``supplier_map`` may be partial: suppliers that were deleted, or whose
    lookup failed, are absent. It is read-only.
    """

    project: Project
    invoices: tuple[Invoice, ...]
    documents: tuple[ClosingDocument, ...]
    supplier_map: Mapping[str, Supplier]


def fetch_report_snapshot(app_config: AppConfig, project_id: str) -> ReportSnapshot:
    """
    Read everything needed to build the report of a project.

    Raises
    ------
    NotFoundError
        If the project does not exist.
    """
    db_cfg = app_config.database

    project = _db_get_project(db_cfg, project_id)
    if project is None:
        raise NotFoundError("projects", project_id)

    with ThreadPoolExecutor(max_workers=2) as pool:
        invoices_future = pool.submit(_db_query_invoices, db_cfg, project_id)
        documents_future = pool.submit(_db_query_closing_documents, db_cfg, project_id)
        invoices = invoices_future.result()
        documents = documents_future.result()

    supplier_ids = [inv.supplier_id for inv in invoices if inv.supplier_id]
    supplier_map: dict[str, Supplier] = batch_fetch(
        supplier_ids,
        lambda chunk: _db_batch_lookup(db_cfg, "suppliers", chunk),
        chunk_size=app_config.gateway.batch_size,
        max_workers=app_config.gateway.max_workers,
        skip_failed_chunks=True,
    )

    logger.info(
        "Project %s: %d invoice(s), %d document(s), %d/%d supplier(s) resolved.",
        project_id,
        len(invoices),
        len(documents),
        len(supplier_map),
        len(set(supplier_ids)),
    )

    return ReportSnapshot(
        project=project,
        invoices=tuple(invoices),
        documents=tuple(documents),
        supplier_map=MappingProxyType(supplier_map),
    )


def generate_project_report(
    app_config: AppConfig,
    project_id: str,
    *,
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
) -> ProjectReportData:
    """
    Build the report of a project from a fresh snapshot.

    Raises
    ------
    NotFoundError
        If the project does not exist.
    ReportGenerationError
        If the snapshot cannot be read or the composition fails.
    """
    try:
        snapshot = fetch_report_snapshot(app_config, project_id)
    except NotFoundError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ReportGenerationError(
            f"Failed to read the data of project {project_id!r}."
        ) from exc

    report_cfg = app_config.report
    return build_report(
        snapshot.project,
        snapshot.invoices,
        snapshot.supplier_map,
        snapshot.documents,
        today=today,
        generated_at=generated_at,
        unknown_supplier_label=report_cfg.unknown_supplier_label,
        missing_supplier_label=report_cfg.missing_supplier_label,
    )


def export_report(
    app_config: AppConfig,
    report: ProjectReportData,
    output_dir: Optional[Path] = None,
) -> Path:
    """Write an already built report as HTML and return the file path."""
    target_dir = Path(output_dir) if output_dir else app_config.report.output_dir
    path = target_dir / report_filename(report)

    try:
        write_report_document(report, path, app_config.report.currency)
    except Exception as exc:  # noqa: BLE001
        raise ReportGenerationError(f"Failed to write report file: {path}") from exc

    logger.info("Report of project %s written to %s", report.project.id, path)
    return path


def export_project_report(
    app_config: AppConfig,
    project_id: str,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Generate the report of a project and export it as an HTML file.

    The file is named ``financial-report-project-<number or id>.html`` and
    written to ``output_dir`` (default: ``[report].output_dir``).

    Returns
    -------
    Path
        Path of the written file.
    """
    report = generate_project_report(app_config, project_id)
    return export_report(app_config, report, output_dir)
