# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record types for Project FinSight.

These dataclasses mirror the records held by the data store (projects,
invoices, suppliers, closing documents, department invoices). They are
created by the database layer or the CSV readers and consumed, read-only,
by the aggregation modules.

Numeric fields
--------------
Every monetary field is ``Optional[float]``. ``None`` means "no data" and
is deliberately distinct from ``0.0``: the aggregation modules propagate
``None`` instead of coercing it, so the presentation layer can render
"N/A" rather than a misleading zero.

Use :func:`coerce_amount` whenever a raw value (CSV cell, database column,
user input) has to be turned into such a field.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Optional

# ---------------------------------------------------------------------------
# Invoice status vocabulary
# ---------------------------------------------------------------------------

PENDING_PAYMENT = "pending_payment"
PAID = "paid"
OVERDUE = "overdue"
CANCELLED = "cancelled"
UNKNOWN = "unknown"

InvoiceStatus = Literal["pending_payment", "paid", "overdue", "cancelled"]
"""
Stored lifecycle status of an invoice.

``unknown`` is never stored: it is the synthetic bucket used when an
invoice has no status at all.
"""

INVOICE_STATUSES: tuple[str, ...] = (PENDING_PAYMENT, PAID, OVERDUE, CANCELLED)


def coerce_amount(value: Any) -> Optional[float]:
    """
    Convert a raw numeric value into an optional float.

    None, empty strings, NaN, infinities and values that cannot be parsed
    as a number all become None. Whitespace inside strings is ignored so
    that thousands separators such as "120 000.50" are accepted.

    Examples
    --------
    >>> coerce_amount("1 500")
    1500.0
    >>> coerce_amount(float("nan")) is None
    True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        cleaned = "".join(value.split())
        if not cleaned:
            return None
        value = cleaned

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Project:
    """
    A billable engagement with planned/actual cost and revenue figures.

    ``planned_budget`` / ``actual_budget`` are cost figures (what the project
    costs), ``planned_revenue`` / ``actual_revenue`` what it earns.
    ``usn_tax`` and ``nds_tax`` are declared tax amounts, not rates.
    """

    id: str
    name: Optional[str] = None
    number: Optional[str] = None
    customer: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[date] = None

    planned_budget: Optional[float] = None
    actual_budget: Optional[float] = None
    planned_revenue: Optional[float] = None
    actual_revenue: Optional[float] = None
    usn_tax: Optional[float] = None
    nds_tax: Optional[float] = None

    description: Optional[str] = None


@dataclass(frozen=True)
class Invoice:
    """A supplier invoice attached to exactly one project."""

    id: str
    project_id: str
    supplier_id: Optional[str] = None
    amount: Optional[float] = None
    status: Optional[str] = None
    due_date: Optional[date] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    paid_at: Optional[date] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class Supplier:
    """A supplier, referenced by invoices through ``supplier_id``."""

    id: str
    name: str


@dataclass(frozen=True)
class ClosingDocument:
    """
    Supporting document evidencing completion of a billed obligation.

    ``invoice_id`` is a weak reference: when it is None the document belongs
    to the project as a whole ("general" document).
    """

    id: str
    project_id: str
    invoice_id: Optional[str] = None
    type: Optional[str] = None
    date: Optional[date] = None
    uploaded_at: Optional[datetime] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None


@dataclass(frozen=True)
class DepartmentInvoice:
    """An invoice booked against a department budget rather than a project."""

    id: str
    primary_category: str
    secondary_category: str
    supplier_id: Optional[str] = None
    amount: Optional[float] = None
    status: Optional[str] = None
    due_date: Optional[date] = None
    submitter_name: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
