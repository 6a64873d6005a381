# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Rendering of project reports to a standalone HTML document.

``render_report_document()`` is a pure transformation of a
:class:`~project_finsight.report.ProjectReportData` value into an HTML
string. It performs no data access: every displayed value, including the
resolved supplier names, is inlined, so the exported file stays meaningful
when opened outside of the application. Styles are inline as well.

The markup lives in the Jinja2 template ``templates/report.html.j2``,
rendered with autoescaping on. This module prepares the displayed values
(texts, colors, the cost usage bar) and exposes the formatters below as
template filters.

Layout
------
- project identity header and project details,
- key insights with colored variance callouts,
- plan / fact metric table,
- cost usage block with a progress bar bounded to 0-100 %,
- tax and net profit block,
- invoices table with nested closing documents (newest first),
- project-level closing documents, and documents of removed invoices,
- supplier spend table (largest first),
- generation timestamp footer.

Formatting conventions
----------------------
- currency: two decimals in detail views, zero decimals in compact rows,
- percentages: one decimal, with an explicit sign on variance figures,
- missing values: rendered as ``N/A``, never as 0 or NaN.

Known limitation: links to invoice and document attachments are embedded
as they are stored. Signed storage URLs may expire after export.
"""

import math
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from jinja2 import Environment, PackageLoader

from .financials import cost_usage_percent, is_over_budget
from .models import CANCELLED, OVERDUE, PAID, PENDING_PAYMENT, UNKNOWN
from .report import ProjectReportData

NO_DATA = "N/A"

# Variances smaller than this are shown as neutral.
NEUTRAL_THRESHOLD = 0.01

COLOR_GOOD = "#16a34a"
COLOR_BAD = "#dc2626"
COLOR_NEUTRAL = "#4b5563"
COLOR_BAR = "#22c55e"

TEMPLATE_NAME = "report.html.j2"

STATUS_LABELS: dict[str, str] = {
    "planning": "Planning",
    "active": "Active",
    "in-progress": "In progress",
    "completed": "Completed",
    "on_hold": "On hold",
    PENDING_PAYMENT: "Pending payment",
    PAID: "Paid",
    OVERDUE: "Overdue",
    CANCELLED: "Cancelled",
    UNKNOWN: "Unknown",
}


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _is_number(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value) and not math.isinf(value)


def format_currency(
    value: Optional[float],
    currency: str = "RUB",
    *,
    compact: bool = False,
    fallback: str = NO_DATA,
) -> str:
    """
    Format a monetary amount, e.g. ``"120,000.00 RUB"``.

    ``compact=True`` drops the decimals (list rows). Missing or non-finite
    values return ``fallback``.
    """
    if not _is_number(value):
        return fallback
    decimals = 0 if compact else 2
    text = f"{value:,.{decimals}f}"
    return f"{text} {currency}" if currency else text


def format_percent(
    value: Optional[float], *, signed: bool = False, fallback: str = NO_DATA
) -> str:
    """Format a percentage with one decimal (``"+20.0%"`` when signed)."""
    if not _is_number(value):
        return fallback
    return f"{value:+.1f}%" if signed else f"{value:.1f}%"


def format_points(value: Optional[float], *, fallback: str = NO_DATA) -> str:
    """Format a difference in percentage points, always signed."""
    if not _is_number(value):
        return fallback
    return f"{value:+.1f} pp"


def format_date(value: Union[date, datetime, None], *, fallback: str = NO_DATA) -> str:
    """Format a date as ``DD.MM.YYYY``."""
    if value is None:
        return fallback
    return value.strftime("%d.%m.%Y")


def format_timestamp(value: Optional[datetime], *, fallback: str = NO_DATA) -> str:
    if value is None:
        return fallback
    return value.strftime("%d.%m.%Y %H:%M:%S %Z").strip()


def translate_status(status: Optional[str]) -> str:
    if not status:
        return NO_DATA
    return STATUS_LABELS.get(status, status)


def variance_color(value: Optional[float], positive_is_good: bool) -> str:
    """
    Color of a variance figure.

    Near-zero and missing values are neutral. For costs a positive variance
    is bad (``positive_is_good=False``); for revenue and margin it is good.
    """
    if not _is_number(value) or abs(value) < NEUTRAL_THRESHOLD:
        return COLOR_NEUTRAL
    if positive_is_good:
        return COLOR_GOOD if value > 0 else COLOR_BAD
    return COLOR_GOOD if value < 0 else COLOR_BAD


# ---------------------------------------------------------------------------
# Template environment
# ---------------------------------------------------------------------------

_STYLES: dict[str, str] = {
    "body": (
        "font-family: system-ui, -apple-system, 'Segoe UI', Roboto, sans-serif; "
        "padding: 24px; background-color: #ffffff; color: #1f2937;"
    ),
    "h1": "font-size: 1.5rem; font-weight: 700; margin-bottom: 1rem; color: #111827;",
    "h2": "font-size: 1.25rem; font-weight: 600; margin-bottom: 0.75rem; color: #374151;",
    "h3": "font-weight: 600; margin-bottom: 0.75rem; font-size: 0.95rem;",
    "section": (
        "margin-bottom: 1.5rem; padding: 1rem; border: 1px solid #e5e7eb; "
        "border-radius: 0.5rem; background-color: #f9fafb;"
    ),
    "grid": (
        "display: grid; grid-template-columns: auto 1fr; gap: 4px 16px; "
        "font-size: 0.875rem;"
    ),
    "label": "color: #4b5563; white-space: nowrap;",
    "value": "font-weight: 500; text-align: right; color: #111827;",
    "table": (
        "width: 100%; border-collapse: collapse; font-size: 0.875rem; "
        "margin-bottom: 1rem;"
    ),
    "th": (
        "background-color: #f3f4f6; text-align: left; padding: 0.5rem 0.75rem; "
        "border: 1px solid #d1d5db; font-weight: 600;"
    ),
    "td": "padding: 0.5rem 0.75rem; border: 1px solid #d1d5db; vertical-align: top;",
    "ul": "list-style: none; padding-left: 0; margin: 0.25rem 0; font-size: 0.75rem;",
    "insights": "list-style: none; padding: 0; margin: 0; font-size: 0.875rem;",
    "link": "color: #2563eb; text-decoration: underline;",
    "muted": "color: #9ca3af;",
    "footer": (
        "font-size: 0.75rem; color: #9ca3af; margin-top: 2rem; text-align: center;"
    ),
}


def _build_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("project_finsight", "templates"),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["currency"] = format_currency
    env.filters["percent"] = format_percent
    env.filters["points"] = format_points
    env.filters["date"] = format_date
    env.filters["timestamp"] = format_timestamp
    env.filters["status"] = translate_status
    env.globals["styles"] = _STYLES
    env.globals["COLOR_BAD"] = COLOR_BAD
    return env


_ENV = _build_environment()


# ---------------------------------------------------------------------------
# Displayed values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Metric:
    label: str
    value: str
    color: Optional[str] = None
    bold: bool = False


@dataclass(frozen=True)
class _Insight:
    icon: str
    text: str
    color: str


@dataclass(frozen=True)
class _CostUsage:
    rows: tuple[_Metric, ...]
    percent: float
    bar_color: str
    border: str
    title: str


def _percent_suffix(value: Optional[float]) -> str:
    if _is_number(value) and abs(value) >= 0.1:
        return f" ({format_percent(value, signed=True)})"
    return ""


def _details(report: ProjectReportData) -> list[_Metric]:
    project = report.project
    return [
        _Metric("Name:", project.name or NO_DATA),
        _Metric("Number:", project.number or NO_DATA),
        _Metric("Customer:", project.customer or NO_DATA),
        _Metric("Status:", translate_status(project.status)),
        _Metric("Due date:", format_date(project.due_date)),
    ]


def _insights(report: ProjectReportData, currency: str) -> list[_Insight]:
    fs = report.financial_summary
    summary = report.invoice_summary
    items: list[_Insight] = []

    bv = fs.budget_variance
    if not _is_number(bv) or abs(bv) < NEUTRAL_THRESHOLD:
        cost_text = "Cost: within plan"
    elif bv < 0:
        cost_text = f"Cost: savings of {format_currency(abs(bv), currency)}"
    else:
        cost_text = f"Cost: overspend of {format_currency(bv, currency)}"
    items.append(
        _Insight(
            "\U0001F4B0",
            cost_text + _percent_suffix(fs.budget_variance_percent),
            variance_color(bv, positive_is_good=False),
        )
    )

    rv = fs.revenue_variance
    if not _is_number(rv) or abs(rv) < NEUTRAL_THRESHOLD:
        revenue_text = "Revenue: on plan"
    elif rv > 0:
        revenue_text = f"Revenue: above plan by {format_currency(rv, currency)}"
    else:
        revenue_text = f"Revenue: below plan by {format_currency(abs(rv), currency)}"
    items.append(
        _Insight(
            "\U0001F4C8",
            revenue_text + _percent_suffix(fs.revenue_variance_percent),
            variance_color(rv, positive_is_good=True),
        )
    )

    margin_text = (
        f"Margin (actual vs plan): {format_percent(fs.actual_margin)} "
        f"vs {format_percent(fs.planned_margin)}"
    )
    mv = fs.margin_variance_percent
    if _is_number(mv) and abs(mv) >= 0.1:
        margin_text += f" ({format_points(mv)})"
    items.append(
        _Insight("\U0001F4CA", margin_text, variance_color(mv, positive_is_good=True))
    )

    if summary.overdue_count > 0:
        items.append(
            _Insight("\u23F1", f"Overdue invoices: {summary.overdue_count}", COLOR_BAD)
        )

    pending_count = summary.count_by_status.get(PENDING_PAYMENT, 0)
    if pending_count > 0:
        items.append(
            _Insight(
                "\u23F3",
                f"Awaiting payment: {pending_count} "
                f"({format_currency(summary.pending_amount, currency)})",
                COLOR_NEUTRAL,
            )
        )

    if report.missing_documents_count > 0:
        items.append(
            _Insight(
                "\U0001F4C4",
                f"Invoices without closing documents: {report.missing_documents_count}",
                COLOR_BAD,
            )
        )

    return items


def _plan_fact(report: ProjectReportData, currency: str) -> list[_Metric]:
    project = report.project
    fs = report.financial_summary

    budget_var = (
        f"{format_currency(fs.budget_variance, currency)} "
        f"({format_percent(fs.budget_variance_percent, signed=True)})"
    )
    revenue_var = (
        f"{format_currency(fs.revenue_variance, currency)} "
        f"({format_percent(fs.revenue_variance_percent, signed=True)})"
    )
    return [
        _Metric("Cost (plan):", format_currency(project.planned_budget, currency)),
        _Metric("Cost (actual):", format_currency(project.actual_budget, currency)),
        _Metric(
            "Variance:",
            budget_var,
            variance_color(fs.budget_variance, positive_is_good=False),
        ),
        _Metric("Revenue (plan):", format_currency(project.planned_revenue, currency)),
        _Metric("Revenue (actual):", format_currency(project.actual_revenue, currency)),
        _Metric(
            "Variance:",
            revenue_var,
            variance_color(fs.revenue_variance, positive_is_good=True),
        ),
        _Metric("Margin (plan):", format_percent(fs.planned_margin)),
        _Metric("Gross margin (actual):", format_percent(fs.actual_margin)),
        _Metric(
            "Variance:",
            format_points(fs.margin_variance_percent),
            variance_color(fs.margin_variance_percent, positive_is_good=True),
        ),
    ]


def _cost_usage(report: ProjectReportData, currency: str) -> _CostUsage:
    project = report.project
    fs = report.financial_summary

    remaining_color = None
    if fs.remaining_cost is not None:
        remaining_color = COLOR_GOOD if fs.remaining_cost >= 0 else COLOR_BAD

    rows = (
        _Metric("Cost (actual):", format_currency(project.actual_budget, currency)),
        _Metric(
            "Spent (invoices + taxes):",
            format_currency(fs.total_spent, currency),
            COLOR_BAD,
        ),
        _Metric(
            "Remaining (actual):",
            format_currency(fs.remaining_cost, currency),
            remaining_color,
            bold=True,
        ),
    )

    percent = cost_usage_percent(fs.total_spent, project.actual_budget)
    over = is_over_budget(fs.total_spent, project.actual_budget)
    return _CostUsage(
        rows=rows,
        percent=percent,
        bar_color=COLOR_BAD if over else COLOR_BAR,
        border=f"1px solid {COLOR_BAD}" if over else "none",
        title=(
            f"Spent {format_currency(fs.total_spent, currency)} of "
            f"{format_currency(project.actual_budget, currency)} ({percent:.1f}%)"
        ),
    )


def _taxes(report: ProjectReportData, currency: str) -> list[_Metric]:
    """Tax block rows; empty when there is nothing to show."""
    project = report.project
    fs = report.financial_summary

    if (
        project.usn_tax is None
        and project.nds_tax is None
        and fs.estimated_net_profit is None
    ):
        return []

    return [
        _Metric(
            "Gross profit (actual):",
            format_currency(fs.gross_profit, currency),
            bold=True,
        ),
        _Metric("USN tax:", format_currency(project.usn_tax, currency)),
        _Metric("NDS tax:", format_currency(project.nds_tax, currency)),
        _Metric(
            "Net profit (estimate):",
            format_currency(fs.estimated_net_profit, currency),
            variance_color(fs.estimated_net_profit, positive_is_good=True),
            bold=True,
        ),
    ]


def _document_title(report: ProjectReportData) -> str:
    project = report.project
    return f"Financial report of project {project.name or project.id}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_report_document(report: ProjectReportData, currency: str = "RUB") -> str:
    """
    Render a complete, self-contained HTML document for a project report.

    Args:
        report: Report data built by ``build_report()``.
        currency: Currency code appended to amounts.

    Returns:
        The HTML document as a string.
    """
    project = report.project
    template = _ENV.get_template(TEMPLATE_NAME)
    return template.render(
        report=report,
        currency=currency,
        title=_document_title(report),
        heading_name=project.name or "Project",
        heading_number=project.number or project.id[:6],
        details=_details(report),
        insights=_insights(report, currency),
        plan_fact=_plan_fact(report, currency),
        usage=_cost_usage(report, currency),
        taxes=_taxes(report, currency),
    )


def report_filename(report: ProjectReportData) -> str:
    """Default file name of an exported report."""
    project = report.project
    key = project.number or project.id
    safe = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in key)
    return f"financial-report-project-{safe}.html"


def write_report_document(
    report: ProjectReportData,
    path: Union[str, "os.PathLike[str]"],
    currency: str = "RUB",
) -> Path:
    """
    Render the report and write it to ``path``.

    The document is rendered fully in memory and written through a
    temporary file renamed into place, so an existing file is never left
    half-written. The temporary file is removed if the write fails.
    """
    target = Path(path)
    document = render_report_document(report, currency)

    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    try:
        tmp.write_text(document, encoding="utf-8")
        os.replace(tmp, target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return target
