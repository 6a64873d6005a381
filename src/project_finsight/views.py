# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Project FinSight.

This module turns report data into pandas DataFrames for console tables
(``df.to_string(index=False)``) and CSV export. Numeric columns keep raw
floats (NaN for missing values) so the CSV files stay machine-readable;
only ``projects_to_dataframe`` pre-formats amounts, in compact currency,
for the project list.
"""

from collections.abc import Iterable

import pandas as pd

from .financials import FinancialSummary
from .models import Project
from .render import NO_DATA, format_currency
from .report import ProjectReportData


def _num(value) -> float:
    return float("nan") if value is None else float(value)


def financial_summary_to_dataframe(
    report: ProjectReportData, decimals: int = 2
) -> pd.DataFrame:
    """
    Convert the financial figures of a report into a (metric, label, value, unit) table.

    Missing values are NaN. Rows follow the order of the report's financial
    summary block.
    """
    project = report.project
    fs: FinancialSummary = report.financial_summary

    metrics = [
        ("planned_budget", "Cost (plan)", project.planned_budget, "amount"),
        ("actual_budget", "Cost (actual)", project.actual_budget, "amount"),
        ("budget_variance", "Cost variance", fs.budget_variance, "amount"),
        ("budget_variance_percent", "Cost variance", fs.budget_variance_percent, "percent"),
        ("planned_revenue", "Revenue (plan)", project.planned_revenue, "amount"),
        ("actual_revenue", "Revenue (actual)", project.actual_revenue, "amount"),
        ("revenue_variance", "Revenue variance", fs.revenue_variance, "amount"),
        (
            "revenue_variance_percent",
            "Revenue variance",
            fs.revenue_variance_percent,
            "percent",
        ),
        ("planned_margin", "Margin (plan)", fs.planned_margin, "percent"),
        ("actual_margin", "Gross margin (actual)", fs.actual_margin, "percent"),
        ("margin_variance_percent", "Margin variance", fs.margin_variance_percent, "points"),
        ("total_spent", "Spent (invoices + taxes)", fs.total_spent, "amount"),
        ("remaining_cost", "Remaining (actual)", fs.remaining_cost, "amount"),
        ("gross_profit", "Gross profit", fs.gross_profit, "amount"),
        ("usn_tax", "USN tax", project.usn_tax, "amount"),
        ("nds_tax", "NDS tax", project.nds_tax, "amount"),
        ("estimated_net_profit", "Net profit (estimate)", fs.estimated_net_profit, "amount"),
    ]

    rows = [
        {
            "metric": key,
            "label": label,
            "value": round(_num(value), decimals),
            "unit": unit,
        }
        for key, label, value, unit in metrics
    ]
    return pd.DataFrame(rows, columns=["metric", "label", "value", "unit"])


def invoices_to_dataframe(report: ProjectReportData) -> pd.DataFrame:
    """
    One row per invoice of the report, in report order.

    Columns: supplier, amount, status, due_date, overdue, closing_documents
    (number of documents attached).
    """
    columns = ["supplier", "amount", "status", "due_date", "overdue", "closing_documents"]
    rows = [
        {
            "supplier": item.supplier_name,
            "amount": _num(item.amount),
            "status": item.status or "",
            "due_date": item.due_date.isoformat() if item.due_date else "",
            "overdue": item.is_overdue,
            "closing_documents": len(item.closing_documents),
        }
        for item in report.invoices
    ]
    return pd.DataFrame(rows, columns=columns)


def supplier_spend_to_dataframe(report: ProjectReportData) -> pd.DataFrame:
    """Supplier spend table (supplier, amount), largest amount first."""
    return pd.DataFrame(list(report.supplier_spend), columns=["supplier", "amount"])


def projects_to_dataframe(projects: Iterable[Project], currency: str = "RUB") -> pd.DataFrame:
    """
    Compact project list for the console.

    Amounts are formatted without decimals; missing figures show as N/A.
    """
    columns = ["id", "number", "name", "customer", "status", "actual_budget", "actual_revenue"]
    rows = [
        {
            "id": p.id,
            "number": p.number or NO_DATA,
            "name": p.name or NO_DATA,
            "customer": p.customer or NO_DATA,
            "status": p.status or NO_DATA,
            "actual_budget": format_currency(p.actual_budget, currency, compact=True),
            "actual_revenue": format_currency(p.actual_revenue, currency, compact=True),
        }
        for p in projects
    ]
    return pd.DataFrame(rows, columns=columns)
