# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Department budget overview.

Department invoices are booked against a two-level category tree
(primary / secondary category) instead of a project. This module
summarizes them per category pair with the same rules as project
invoices: cancelled invoices are not spend, and the overdue rule of
:func:`project_finsight.invoices.is_overdue` applies.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

import pandas as pd

from .invoices import _today, is_overdue
from .models import CANCELLED, PENDING_PAYMENT, DepartmentInvoice

DEPARTMENT_COLUMNS = [
    "primary_category",
    "secondary_category",
    "invoice_count",
    "total_amount",
    "pending_amount",
    "overdue_count",
]


def aggregate_department_spend(
    invoices: Iterable[DepartmentInvoice],
    today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Summarize department invoices per (primary, secondary) category.

    Columns:
        - primary_category / secondary_category
        - invoice_count:  number of invoices, cancelled included
        - total_amount:   sum of defined amounts of non-cancelled invoices
        - pending_amount: sum of amounts of ``pending_payment`` invoices
        - overdue_count:  number of overdue invoices

    Rows are sorted by primary category, then by total amount descending.
    An empty input yields an empty DataFrame with the same columns.
    """
    reference = today or _today()

    rows: list[dict[str, object]] = []
    for inv in invoices:
        amount = inv.amount if inv.amount is not None else 0.0
        rows.append(
            {
                "primary_category": inv.primary_category,
                "secondary_category": inv.secondary_category,
                "invoice_count": 1,
                "total_amount": amount if inv.status != CANCELLED else 0.0,
                "pending_amount": amount if inv.status == PENDING_PAYMENT else 0.0,
                "overdue_count": 1 if is_overdue(inv, reference) else 0,
            }
        )

    if not rows:
        return pd.DataFrame(columns=DEPARTMENT_COLUMNS)

    df = pd.DataFrame(rows)
    out = df.groupby(
        ["primary_category", "secondary_category"], as_index=False
    ).agg(
        invoice_count=("invoice_count", "sum"),
        total_amount=("total_amount", "sum"),
        pending_amount=("pending_amount", "sum"),
        overdue_count=("overdue_count", "sum"),
    )

    out = out.sort_values(
        ["primary_category", "total_amount", "secondary_category"],
        ascending=[True, False, True],
        kind="stable",
    ).reset_index(drop=True)

    return out[DEPARTMENT_COLUMNS]
