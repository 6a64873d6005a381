# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Closing document completeness checks.

Closing documents reference invoices weakly (``invoice_id`` may be missing
or point to an invoice that no longer exists). This module groups them by
invoice and tells, for each invoice, whether it is documented.

Documents without ``invoice_id`` are project-level documents. They go to a
separate "general" bucket and never mark any invoice as documented.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType

from .models import CANCELLED, ClosingDocument, Invoice

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DocumentCompleteness:
    """Closing documents attached to one invoice, most recent first."""

    has_closing_docs: bool
    documents: tuple[ClosingDocument, ...]


@dataclass(frozen=True)
class DocumentIndex:
    """
    Result of :func:`check_document_completeness`.

    Attributes
    ----------
    by_invoice:
        Read-only mapping invoice id -> DocumentCompleteness, one entry
        per input invoice.
    general:
        Project-level documents (no ``invoice_id``), most recent first.
    orphans:
        Documents pointing to an invoice id that is not part of the input.
    """

    by_invoice: Mapping[str, DocumentCompleteness]
    general: tuple[ClosingDocument, ...]
    orphans: tuple[ClosingDocument, ...] = ()

    def for_invoice(self, invoice_id: str) -> DocumentCompleteness:
        """Return the completeness of an invoice; unknown ids have no docs."""
        return self.by_invoice.get(
            invoice_id, DocumentCompleteness(has_closing_docs=False, documents=())
        )


def _upload_sort_key(doc: ClosingDocument) -> tuple[datetime, str]:
    uploaded = doc.uploaded_at
    if uploaded is None:
        uploaded = _EPOCH
    elif uploaded.tzinfo is None:
        uploaded = uploaded.replace(tzinfo=timezone.utc)
    return (uploaded, doc.id)


def sort_newest_first(documents: Iterable[ClosingDocument]) -> tuple[ClosingDocument, ...]:
    """Sort documents by upload time, most recent first (undated last)."""
    return tuple(sorted(documents, key=_upload_sort_key, reverse=True))


def check_document_completeness(
    invoices: Sequence[Invoice],
    documents: Iterable[ClosingDocument],
) -> DocumentIndex:
    """
    Group closing documents by invoice and flag undocumented invoices.

    Args:
        invoices: Invoices of the project.
        documents: Closing documents of the project.

    Returns:
        A DocumentIndex. Every invoice gets an entry; an invoice with no
        matching document has ``has_closing_docs=False`` and an empty list.
    """
    grouped: dict[str, list[ClosingDocument]] = defaultdict(list)
    general: list[ClosingDocument] = []

    for doc in documents:
        if doc.invoice_id:
            grouped[doc.invoice_id].append(doc)
        else:
            general.append(doc)

    by_invoice: dict[str, DocumentCompleteness] = {}
    for invoice in invoices:
        attached = sort_newest_first(grouped.get(invoice.id, ()))
        by_invoice[invoice.id] = DocumentCompleteness(
            has_closing_docs=len(attached) > 0,
            documents=attached,
        )

    orphans = [
        doc
        for invoice_id, docs in grouped.items()
        if invoice_id not in by_invoice
        for doc in docs
    ]

    return DocumentIndex(
        by_invoice=MappingProxyType(by_invoice),
        general=sort_newest_first(general),
        orphans=sort_newest_first(orphans),
    )


def invoices_missing_documents(
    invoices: Iterable[Invoice],
    index: DocumentIndex,
) -> list[Invoice]:
    """Return non-cancelled invoices that have no closing document."""
    return [
        invoice
        for invoice in invoices
        if invoice.status != CANCELLED
        and not index.for_invoice(invoice.id).has_closing_docs
    ]
