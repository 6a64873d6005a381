# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Report composition for Project FinSight.

``build_report()`` combines a consistent snapshot of a project's records
into a single immutable :class:`ProjectReportData` value:

- project metadata (copied as is),
- one :class:`InvoiceReportItem` per invoice, with its supplier name
  already resolved and its closing documents attached (newest first),
- project-level ("general") closing documents,
- closing documents whose invoice no longer exists ("orphans"), kept
  with the id of the invoice they referenced,
- the invoice status summary (invoices.py),
- the financial summary (financials.py),
- the supplier spend table (suppliers.py).

The composition is pure: identical inputs give equal reports. The only
exception is ``generated_at``, a presentation timestamp excluded from
equality comparisons.

The composition is also atomic: an unexpected error is re-raised as a
single ReportGenerationError and no partially populated report escapes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

from .documents import DocumentIndex, check_document_completeness, invoices_missing_documents
from .errors import ReportGenerationError
from .financials import FinancialSummary, compute_financial_summary, non_cancelled
from .invoices import InvoiceSummary, _today, compute_invoice_summary, is_overdue
from .models import ClosingDocument, Invoice, Project, Supplier
from .suppliers import (
    MISSING_SUPPLIER_LABEL,
    UNKNOWN_SUPPLIER_LABEL,
    aggregate_supplier_spend,
    resolve_supplier_name,
)


@dataclass(frozen=True)
class ClosingDocumentReportItem:
    """A closing document as displayed in a report."""

    id: str
    file_name: str
    invoice_id: Optional[str]
    type: Optional[str]
    date: Optional[date]
    uploaded_at: Optional[datetime]
    file_url: Optional[str]


@dataclass(frozen=True)
class InvoiceReportItem:
    """An invoice as displayed in a report, supplier name inlined."""

    id: str
    supplier_name: str
    amount: Optional[float]
    status: Optional[str]
    due_date: Optional[date]
    paid_at: Optional[date]
    file_url: Optional[str]
    file_name: Optional[str]
    is_overdue: bool
    closing_documents: tuple[ClosingDocumentReportItem, ...]

    @property
    def has_closing_docs(self) -> bool:
        return len(self.closing_documents) > 0


@dataclass(frozen=True)
class ProjectReportData:
    """
    Frozen snapshot of everything a project report displays.

    ``generated_at`` belongs to presentation and is ignored when comparing
    two reports.
    """

    project: Project
    invoices: tuple[InvoiceReportItem, ...]
    general_documents: tuple[ClosingDocumentReportItem, ...]
    orphan_documents: tuple[ClosingDocumentReportItem, ...]
    invoice_summary: InvoiceSummary
    financial_summary: FinancialSummary
    supplier_spend: tuple[tuple[str, float], ...]
    missing_documents_count: int
    generated_at: datetime = field(compare=False)


def _document_item(doc: ClosingDocument) -> ClosingDocumentReportItem:
    return ClosingDocumentReportItem(
        id=doc.id,
        file_name=doc.file_name or doc.type or doc.id,
        invoice_id=doc.invoice_id,
        type=doc.type,
        date=doc.date,
        uploaded_at=doc.uploaded_at,
        file_url=doc.file_url,
    )


def _due_date_sort_key(item: InvoiceReportItem) -> tuple[int, date, str]:
    # Earliest due date first, invoices without due date last.
    if item.due_date is None:
        return (1, date.max, item.id)
    return (0, item.due_date, item.id)


def _compose(
    project: Project,
    invoices: Sequence[Invoice],
    supplier_map: Mapping[str, Supplier],
    documents: Sequence[ClosingDocument],
    today: date,
    generated_at: datetime,
    unknown_label: str,
    missing_label: str,
) -> ProjectReportData:
    index: DocumentIndex = check_document_completeness(invoices, documents)

    names_by_invoice = {
        invoice.id: resolve_supplier_name(
            invoice,
            supplier_map,
            unknown_label=unknown_label,
            missing_label=missing_label,
        )
        for invoice in invoices
    }

    items = [
        InvoiceReportItem(
            id=invoice.id,
            supplier_name=names_by_invoice[invoice.id],
            amount=invoice.amount,
            status=invoice.status,
            due_date=invoice.due_date,
            paid_at=invoice.paid_at,
            file_url=invoice.file_url,
            file_name=invoice.file_name,
            is_overdue=is_overdue(invoice, today),
            closing_documents=tuple(
                _document_item(doc) for doc in index.for_invoice(invoice.id).documents
            ),
        )
        for invoice in invoices
    ]
    items.sort(key=_due_date_sort_key)

    spend = aggregate_supplier_spend(
        invoices,
        supplier_map,
        unknown_label=unknown_label,
        missing_label=missing_label,
        names_by_invoice=names_by_invoice,
    )

    return ProjectReportData(
        project=project,
        invoices=tuple(items),
        general_documents=tuple(_document_item(doc) for doc in index.general),
        orphan_documents=tuple(_document_item(doc) for doc in index.orphans),
        invoice_summary=compute_invoice_summary(invoices, today),
        financial_summary=compute_financial_summary(project, non_cancelled(invoices)),
        supplier_spend=tuple(spend),
        missing_documents_count=len(invoices_missing_documents(invoices, index)),
        generated_at=generated_at,
    )


def build_report(
    project: Project,
    invoices: Sequence[Invoice],
    supplier_map: Mapping[str, Supplier],
    documents: Sequence[ClosingDocument],
    *,
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
    unknown_supplier_label: str = UNKNOWN_SUPPLIER_LABEL,
    missing_supplier_label: str = MISSING_SUPPLIER_LABEL,
) -> ProjectReportData:
    """
    Build the report data of a project from an in-memory snapshot.

    Args:
        project: The project.
        invoices: All invoices of the project, cancelled included.
        supplier_map: Supplier id -> Supplier, possibly partial.
        documents: All closing documents of the project.
        today: Reference date for overdue detection (default: local date).
        generated_at: Presentation timestamp (default: now, UTC).
        unknown_supplier_label: Name used for unresolved supplier ids.
        missing_supplier_label: Name used for invoices without supplier.

    Returns:
        A ProjectReportData instance.

    Raises:
        ReportGenerationError: if anything unexpected fails while composing.
    """
    stamp = generated_at or datetime.now(timezone.utc)
    reference = today or _today()

    try:
        return _compose(
            project,
            list(invoices),
            supplier_map,
            list(documents),
            reference,
            stamp,
            unknown_supplier_label,
            missing_supplier_label,
        )
    except Exception as exc:  # noqa: BLE001
        raise ReportGenerationError(
            f"Failed to build the report of project {project.id!r}."
        ) from exc
