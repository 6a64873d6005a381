# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Invoice status classification for Project FinSight.

This module buckets invoices by their stored status, flags overdue
invoices and sums the amount still awaiting payment.

Two independent views are produced:

- ``count_by_status`` tallies the *stored* status of every invoice. An
  invoice without status lands in the synthetic ``unknown`` bucket, so the
  counts always add up to the number of invoices.
- ``overdue_count`` counts invoices flagged by :func:`is_overdue`. An
  invoice is overdue when it is explicitly stored as ``overdue`` or when
  its due date has passed while it is neither paid nor cancelled. Each
  invoice counts at most once, whichever rule matched.

A ``pending_payment`` invoice whose due date has passed therefore appears
once under ``count_by_status["pending_payment"]`` and once in
``overdue_count``.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Optional

from .models import CANCELLED, OVERDUE, PAID, PENDING_PAYMENT, UNKNOWN, Invoice


@dataclass(frozen=True)
class InvoiceSummary:
    """
    Status overview of a set of invoices.

    Attributes
    ----------
    status_counts:
        ``(status, count)`` pairs sorted by status (``unknown`` for missing
        statuses). Read them as a mapping through ``count_by_status``.
    overdue_count:
        Number of overdue invoices (each counted at most once).
    pending_amount:
        Sum of amounts of invoices stored as ``pending_payment``. Missing
        amounts count as 0.
    """

    status_counts: tuple[tuple[str, int], ...]
    overdue_count: int
    pending_amount: float

    @property
    def count_by_status(self) -> MappingProxyType:
        """Read-only mapping status -> number of invoices."""
        return MappingProxyType(dict(self.status_counts))

    @property
    def total_count(self) -> int:
        return sum(count for _, count in self.status_counts)


def _today() -> date:
    """Return today's date (isolated for easier testing)."""
    return datetime.today().date()


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def is_overdue(invoice: Any, today: Optional[date] = None) -> bool:
    """
    Return True if the invoice is overdue on ``today``.

    Any object exposing ``status`` and ``due_date`` attributes is accepted
    (project invoices as well as department invoices).

    The due date is compared at day granularity: an invoice due today is
    not overdue yet, one due yesterday is.
    """
    status = invoice.status
    if status == OVERDUE:
        return True

    if status in (PAID, CANCELLED):
        return False

    due = _as_date(invoice.due_date)
    if due is None:
        return False

    return due < (today or _today())


def compute_invoice_summary(
    invoices: Iterable[Invoice],
    today: Optional[date] = None,
) -> InvoiceSummary:
    """
    Classify invoices by status and compute overdue/pending figures.

    Args:
        invoices: Invoices to classify (any status, cancelled included).
        today: Reference date for the overdue rule. Defaults to the
            current date.

    Returns:
        An InvoiceSummary. For an empty input all figures are zero.
    """
    reference = today or _today()

    counts: Counter[str] = Counter()
    overdue_count = 0
    pending_amount = 0.0

    for invoice in invoices:
        status = invoice.status or UNKNOWN
        counts[status] += 1

        if is_overdue(invoice, reference):
            overdue_count += 1

        if invoice.status == PENDING_PAYMENT:
            pending_amount += invoice.amount if invoice.amount is not None else 0.0

    return InvoiceSummary(
        status_counts=tuple(sorted(counts.items())),
        overdue_count=overdue_count,
        pending_amount=pending_amount,
    )
