# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Supplier resolution and supplier spend aggregation.

Invoices only carry a ``supplier_id``. Before anything is displayed, the id
is resolved to a supplier name through a (possibly partial) lookup map
built by the data access layer.

Resolution never fails:

- an invoice without ``supplier_id`` gets the "missing supplier" label,
- an invoice whose ``supplier_id`` is absent from the map (supplier deleted
  or not fetched) gets the "unknown supplier" label and a warning is logged
  for operators.

Spend aggregation sums the defined amounts of non-cancelled invoices per
resolved name and orders the result by amount (descending), then by name
(ascending) so that ties are deterministic.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

import pandas as pd

from .models import CANCELLED, Invoice, Supplier

logger = logging.getLogger(__name__)

UNKNOWN_SUPPLIER_LABEL = "Unknown supplier"
MISSING_SUPPLIER_LABEL = "Not specified"

SupplierSpend = list[tuple[str, float]]


def resolve_supplier_name(
    invoice: Invoice,
    supplier_map: Mapping[str, Supplier],
    *,
    unknown_label: str = UNKNOWN_SUPPLIER_LABEL,
    missing_label: str = MISSING_SUPPLIER_LABEL,
    warn: bool = True,
) -> str:
    """
    Return the display name of the invoice's supplier.

    Falls back to ``missing_label`` when the invoice has no supplier id and
    to ``unknown_label`` when the id cannot be resolved. In the latter case
    a warning is logged unless ``warn`` is False.
    """
    supplier_id = invoice.supplier_id
    if not supplier_id:
        return missing_label

    supplier = supplier_map.get(supplier_id)
    if supplier is None or not supplier.name:
        if warn:
            logger.warning(
                "Invoice %s references unresolved supplier %s; using %r.",
                invoice.id,
                supplier_id,
                unknown_label,
            )
        return unknown_label

    return supplier.name


def aggregate_supplier_spend(
    invoices: Iterable[Invoice],
    supplier_map: Mapping[str, Supplier],
    *,
    unknown_label: str = UNKNOWN_SUPPLIER_LABEL,
    missing_label: str = MISSING_SUPPLIER_LABEL,
    names_by_invoice: Optional[Mapping[str, str]] = None,
) -> SupplierSpend:
    """
    Sum non-cancelled invoice amounts per supplier name.

    Args:
        invoices: Invoices of a project (any status).
        supplier_map: Mapping supplier id -> Supplier. May be partial.
        unknown_label: Name used for unresolved supplier ids.
        missing_label: Name used for invoices without supplier id.
        names_by_invoice: Optional pre-resolved names keyed by invoice id.
            When given, resolution is skipped for those invoices (and no
            second warning is logged).

    Returns:
        A list of (supplier name, total amount) pairs sorted by amount
        descending, then name ascending. Cancelled invoices and invoices
        without amount are excluded; unresolved suppliers are kept under
        ``unknown_label``.
    """
    rows: list[dict[str, object]] = []
    for invoice in invoices:
        if invoice.status == CANCELLED or invoice.amount is None:
            continue

        if names_by_invoice is not None and invoice.id in names_by_invoice:
            name = names_by_invoice[invoice.id]
        else:
            name = resolve_supplier_name(
                invoice,
                supplier_map,
                unknown_label=unknown_label,
                missing_label=missing_label,
            )
        rows.append({"supplier": name, "amount": float(invoice.amount)})

    if not rows:
        return []

    df = pd.DataFrame(rows)
    totals = df.groupby("supplier", as_index=False, sort=False)["amount"].sum()
    totals = totals.sort_values(
        ["amount", "supplier"], ascending=[False, True], kind="stable"
    )

    return [
        (str(row.supplier), float(row.amount))
        for row in totals.itertuples(index=False)
    ]
