# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Project FinSight.

This module reads the records of the data store from CSV files and turns
them into the typed records of :mod:`project_finsight.models`, ready to be
upserted into the database.

Expected input formats
----------------------

Column names are case-insensitive. Unknown columns are ignored.

- projects:            id, name, number, customer, status, due_date,
                       planned_budget, actual_budget, planned_revenue,
                       actual_revenue, usn_tax, nds_tax, description
                       (required: id)
- suppliers:           id, name (both required)
- invoices:            id, project_id, supplier_id, amount, status,
                       due_date, file_url, file_name, uploaded_at, paid_at,
                       comment (required: id, project_id)
- closing documents:   id, project_id, invoice_id, type, date, uploaded_at,
                       file_url, file_name (required: id, project_id)
- department invoices: id, primary_category, secondary_category,
                       supplier_id, amount, status, due_date,
                       submitter_name, uploaded_at, file_url, file_name
                       (required: id, primary_category, secondary_category)

Parsing rules
-------------
- Empty cells become None.
- Monetary columns are coerced leniently: a value that is not a number
  becomes None ("no data") rather than failing the whole import.
- Date and timestamp columns are parsed strictly: an invalid value raises
  ValueError naming the column.
- Invoice statuses are normalized to lower case; unknown statuses are kept
  as they are.
"""

import os
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any, Optional, Union

import pandas as pd

from .models import (
    ClosingDocument,
    DepartmentInvoice,
    Invoice,
    Project,
    Supplier,
    coerce_amount,
)

PathLike = Union[str, "os.PathLike[str]"]


def _read_csv(path: PathLike, required: Iterable[str]) -> pd.DataFrame:
    """Read a CSV file as text columns and check the required columns."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    # Normalize column names to lowercase (to make the check case-insensitive)
    df.columns = [c.lower().strip() for c in df.columns]

    missing = set(required).difference(df.columns)
    if missing:
        cols = ", ".join(sorted(missing))
        raise ValueError(f"CSV file {path} is missing required column(s): {cols}")

    return df


def _text(row: dict[str, Any], col: str) -> Optional[str]:
    value = row.get(col)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _required_text(row: dict[str, Any], col: str, line: int) -> str:
    value = _text(row, col)
    if value is None:
        raise ValueError(f"Empty value in required column '{col}' (row {line}).")
    return value


def _status(row: dict[str, Any]) -> Optional[str]:
    value = _text(row, "status")
    return value.lower() if value else None


def _parse_timestamp(row: dict[str, Any], col: str) -> Optional[pd.Timestamp]:
    value = _text(row, col)
    if value is None:
        return None
    # Parse strictly: invalid dates should fail loudly
    try:
        return pd.to_datetime(value, errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid value in '{col}' column: {value!r}.") from exc


def _date(row: dict[str, Any], col: str) -> Optional[date]:
    ts = _parse_timestamp(row, col)
    return None if ts is None else ts.date()


def _datetime(row: dict[str, Any], col: str) -> Optional[datetime]:
    ts = _parse_timestamp(row, col)
    return None if ts is None else ts.to_pydatetime()


def _rows(df: pd.DataFrame) -> Iterable[tuple[int, dict[str, Any]]]:
    # CSV line numbers start at 2 (line 1 is the header).
    for idx, row in enumerate(df.to_dict(orient="records"), start=2):
        yield idx, row


def read_projects(path: PathLike) -> list[Project]:
    """Read projects from a CSV file (see module docstring for columns)."""
    df = _read_csv(path, {"id"})
    return [
        Project(
            id=_required_text(row, "id", line),
            name=_text(row, "name"),
            number=_text(row, "number"),
            customer=_text(row, "customer"),
            status=_text(row, "status"),
            due_date=_date(row, "due_date"),
            planned_budget=coerce_amount(row.get("planned_budget")),
            actual_budget=coerce_amount(row.get("actual_budget")),
            planned_revenue=coerce_amount(row.get("planned_revenue")),
            actual_revenue=coerce_amount(row.get("actual_revenue")),
            usn_tax=coerce_amount(row.get("usn_tax")),
            nds_tax=coerce_amount(row.get("nds_tax")),
            description=_text(row, "description"),
        )
        for line, row in _rows(df)
    ]


def read_suppliers(path: PathLike) -> list[Supplier]:
    """Read suppliers (id, name) from a CSV file."""
    df = _read_csv(path, {"id", "name"})
    return [
        Supplier(id=_required_text(row, "id", line), name=_required_text(row, "name", line))
        for line, row in _rows(df)
    ]


def read_invoices(path: PathLike) -> list[Invoice]:
    """Read project invoices from a CSV file."""
    df = _read_csv(path, {"id", "project_id"})
    return [
        Invoice(
            id=_required_text(row, "id", line),
            project_id=_required_text(row, "project_id", line),
            supplier_id=_text(row, "supplier_id"),
            amount=coerce_amount(row.get("amount")),
            status=_status(row),
            due_date=_date(row, "due_date"),
            file_url=_text(row, "file_url"),
            file_name=_text(row, "file_name"),
            uploaded_at=_datetime(row, "uploaded_at"),
            paid_at=_date(row, "paid_at"),
            comment=_text(row, "comment"),
        )
        for line, row in _rows(df)
    ]


def read_closing_documents(path: PathLike) -> list[ClosingDocument]:
    """Read closing documents from a CSV file."""
    df = _read_csv(path, {"id", "project_id"})
    return [
        ClosingDocument(
            id=_required_text(row, "id", line),
            project_id=_required_text(row, "project_id", line),
            invoice_id=_text(row, "invoice_id"),
            type=_text(row, "type"),
            date=_date(row, "date"),
            uploaded_at=_datetime(row, "uploaded_at"),
            file_url=_text(row, "file_url"),
            file_name=_text(row, "file_name"),
        )
        for line, row in _rows(df)
    ]


def read_department_invoices(path: PathLike) -> list[DepartmentInvoice]:
    """Read department invoices from a CSV file."""
    df = _read_csv(path, {"id", "primary_category", "secondary_category"})
    return [
        DepartmentInvoice(
            id=_required_text(row, "id", line),
            primary_category=_required_text(row, "primary_category", line),
            secondary_category=_required_text(row, "secondary_category", line),
            supplier_id=_text(row, "supplier_id"),
            amount=coerce_amount(row.get("amount")),
            status=_status(row),
            due_date=_date(row, "due_date"),
            submitter_name=_text(row, "submitter_name"),
            uploaded_at=_datetime(row, "uploaded_at"),
            file_url=_text(row, "file_url"),
            file_name=_text(row, "file_name"),
        )
        for line, row in _rows(df)
    ]
