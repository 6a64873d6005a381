from datetime import datetime, timezone

import pytest

from project_finsight.documents import (
    check_document_completeness,
    invoices_missing_documents,
    sort_newest_first,
)
from project_finsight.models import ClosingDocument, Invoice


def make_doc(doc_id: str, invoice_id=None, uploaded_at=None) -> ClosingDocument:
    return ClosingDocument(
        id=doc_id,
        project_id="p1",
        invoice_id=invoice_id,
        uploaded_at=uploaded_at,
        file_name=f"{doc_id}.pdf",
    )


INVOICES = [
    Invoice(id="i1", project_id="p1", status="paid"),
    Invoice(id="i2", project_id="p1", status="pending_payment"),
    Invoice(id="i3", project_id="p1", status="cancelled"),
]


def test_documents_grouped_by_invoice_newest_first() -> None:
    docs = [
        make_doc("d1", "i1", datetime(2025, 1, 1, tzinfo=timezone.utc)),
        make_doc("d2", "i1", datetime(2025, 3, 1, tzinfo=timezone.utc)),
        make_doc("d3", "i1", datetime(2025, 2, 1)),
    ]

    index = check_document_completeness(INVOICES, docs)

    entry = index.for_invoice("i1")
    assert entry.has_closing_docs is True
    assert [d.id for d in entry.documents] == ["d2", "d3", "d1"]


def test_general_document_does_not_mark_any_invoice() -> None:
    """A document without invoice goes to the general bucket only."""
    docs = [make_doc("g1", None, datetime(2025, 1, 1))]

    index = check_document_completeness(INVOICES, docs)

    assert [d.id for d in index.general] == ["g1"]
    assert all(not c.has_closing_docs for c in index.by_invoice.values())


def test_unknown_invoice_has_no_documents_and_orphans_are_kept() -> None:
    docs = [make_doc("d1", "removed-invoice")]

    index = check_document_completeness(INVOICES, docs)

    missing = index.for_invoice("not-in-index")
    assert missing.has_closing_docs is False
    assert missing.documents == ()
    assert [d.id for d in index.orphans] == ["d1"]


def test_undated_documents_sort_last() -> None:
    docs = [make_doc("a"), make_doc("b", uploaded_at=datetime(2024, 5, 1))]
    assert [d.id for d in sort_newest_first(docs)] == ["b", "a"]


def test_invoices_missing_documents_skips_cancelled() -> None:
    docs = [make_doc("d1", "i1")]

    index = check_document_completeness(INVOICES, docs)

    assert [inv.id for inv in invoices_missing_documents(INVOICES, index)] == ["i2"]


def test_index_by_invoice_is_read_only() -> None:
    index = check_document_completeness(INVOICES, [make_doc("d1", "i1")])

    with pytest.raises(TypeError):
        index.by_invoice["i9"] = index.for_invoice("i1")
    assert "i9" not in index.by_invoice
