# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Financial aggregation for a single project.

This module turns a project's plan/fact figures and its invoices into the
derived metrics shown in reports:

1. Spend
   -----
   ``total_spent`` is the sum of non-cancelled invoice amounts plus the
   declared USN and NDS taxes. Missing amounts and taxes count as 0 here,
   because an invoice without amount has simply not cost anything yet.

   ``remaining_cost = actual_budget - total_spent``. A negative value is an
   overspend signal, not an error.

2. Variances
   ---------
   ``budget_variance = actual_budget - planned_budget`` (positive = costs
   above plan, bad) and ``revenue_variance = actual_revenue -
   planned_revenue`` (positive = better than plan, good). Their percent
   counterparts are relative to the planned figure.

3. Margins
   -------
   ``planned_margin`` and ``actual_margin`` are *gross* margins in percent
   of revenue, before tax. ``margin_variance_percent`` is their difference
   in percentage points.

4. Profit
   ------
   ``gross_profit = actual_revenue - actual_budget`` and
   ``estimated_net_profit = gross_profit - usn_tax - nds_tax`` (missing taxes
   count as 0).

Missing values
--------------
Apart from ``total_spent``, every metric depending on a missing project
figure is None. Percentages whose denominator is missing or zero are None
as well, never NaN or infinity. The presentation layer renders None as
"N/A".

All functions are pure: the same inputs always yield the same summary.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .models import CANCELLED, Invoice, Project


@dataclass(frozen=True)
class FinancialSummary:
    """
    Derived financial metrics of a project.

    Percent fields are expressed in percent (15.0 means 15 %), except
    ``margin_variance_percent`` which is a difference in percentage points.
    """

    total_spent: float
    remaining_cost: Optional[float]
    budget_variance: Optional[float]
    budget_variance_percent: Optional[float]
    revenue_variance: Optional[float]
    revenue_variance_percent: Optional[float]
    planned_margin: Optional[float]
    actual_margin: Optional[float]
    margin_variance_percent: Optional[float]
    gross_profit: Optional[float]
    estimated_net_profit: Optional[float]


def _difference(a: Optional[float], b: Optional[float]) -> Optional[float]:
    """Return ``a - b``, or None when either operand is missing."""
    if a is None or b is None:
        return None
    return a - b


def _percent_of(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Return ``numerator / denominator * 100`` guarded against 0 and None."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    value = numerator / denominator * 100
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _margin(revenue: Optional[float], cost: Optional[float]) -> Optional[float]:
    return _percent_of(_difference(revenue, cost), revenue)


def non_cancelled(invoices: Iterable[Invoice]) -> list[Invoice]:
    """Return the invoices whose stored status is not ``cancelled``."""
    return [invoice for invoice in invoices if invoice.status != CANCELLED]


def compute_financial_summary(
    project: Project,
    non_cancelled_invoices: Iterable[Invoice],
) -> FinancialSummary:
    """
    Compute the financial summary of a project.

    Args:
        project: The project and its plan/fact figures.
        non_cancelled_invoices: The project's invoices, excluding cancelled
            ones. Cancelled invoices passed by mistake are ignored.

    Returns:
        A FinancialSummary (see the module docstring for the formulas).
    """
    usn_tax = project.usn_tax if project.usn_tax is not None else 0.0
    nds_tax = project.nds_tax if project.nds_tax is not None else 0.0

    spent_on_invoices = sum(
        invoice.amount
        for invoice in non_cancelled(non_cancelled_invoices)
        if invoice.amount is not None
    )
    total_spent = float(spent_on_invoices) + usn_tax + nds_tax

    budget_variance = _difference(project.actual_budget, project.planned_budget)
    revenue_variance = _difference(project.actual_revenue, project.planned_revenue)

    planned_margin = _margin(project.planned_revenue, project.planned_budget)
    actual_margin = _margin(project.actual_revenue, project.actual_budget)

    gross_profit = _difference(project.actual_revenue, project.actual_budget)
    estimated_net_profit = (
        gross_profit - usn_tax - nds_tax if gross_profit is not None else None
    )

    return FinancialSummary(
        total_spent=total_spent,
        remaining_cost=_difference(project.actual_budget, total_spent),
        budget_variance=budget_variance,
        budget_variance_percent=_percent_of(budget_variance, project.planned_budget),
        revenue_variance=revenue_variance,
        revenue_variance_percent=_percent_of(
            revenue_variance, project.planned_revenue
        ),
        planned_margin=planned_margin,
        actual_margin=actual_margin,
        margin_variance_percent=_difference(actual_margin, planned_margin),
        gross_profit=gross_profit,
        estimated_net_profit=estimated_net_profit,
    )


def cost_usage_percent(spent: float, budget: Optional[float]) -> float:
    """
    Share of the actual budget already spent, bounded to [0, 100].

    Returns 0.0 when the budget is missing or not positive.
    """
    if budget is None or budget <= 0:
        return 0.0
    return max(0.0, min(spent / budget * 100, 100.0))


def is_over_budget(spent: float, budget: Optional[float]) -> bool:
    """True when a positive budget exists and spending exceeds it."""
    return budget is not None and budget > 0 and spent > budget
