from datetime import date, datetime, timezone

import pytest

import project_finsight.report as report_module
from project_finsight.errors import ReportGenerationError
from project_finsight.models import ClosingDocument, Invoice, Project, Supplier
from project_finsight.report import build_report

TODAY = date(2025, 6, 15)
STAMP = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

PROJECT = Project(
    id="p1",
    name="Warehouse fit-out",
    number="P-001",
    planned_budget=100_000.0,
    actual_budget=120_000.0,
    planned_revenue=200_000.0,
    actual_revenue=210_000.0,
    usn_tax=3_000.0,
    nds_tax=0.0,
)

INVOICES = [
    Invoice(
        id="i1",
        project_id="p1",
        supplier_id="s1",
        amount=50_000.0,
        status="paid",
        due_date=date(2025, 5, 1),
    ),
    Invoice(
        id="i2",
        project_id="p1",
        supplier_id="s2",
        amount=70_000.0,
        status="pending_payment",
        due_date=date(2025, 6, 1),
    ),
    Invoice(
        id="i3",
        project_id="p1",
        supplier_id="gone",
        amount=10_000.0,
        status="cancelled",
    ),
]

SUPPLIERS = {"s1": Supplier(id="s1", name="Acme Steel")}

DOCUMENTS = [
    ClosingDocument(id="d1", project_id="p1", invoice_id="i1", file_name="act.pdf"),
    ClosingDocument(id="g1", project_id="p1", invoice_id=None, file_name="contract.pdf"),
]


def build(**kwargs):
    return build_report(
        PROJECT, INVOICES, SUPPLIERS, DOCUMENTS, today=TODAY, generated_at=STAMP, **kwargs
    )


def test_build_report_combines_all_parts() -> None:
    report = build()

    assert report.project is PROJECT
    assert report.generated_at == STAMP
    assert report.financial_summary.total_spent == pytest.approx(123_000.0)
    assert report.invoice_summary.overdue_count == 1
    assert report.supplier_spend == (
        ("Unknown supplier", 70_000.0),
        ("Acme Steel", 50_000.0),
    )
    assert [d.id for d in report.general_documents] == ["g1"]
    assert report.missing_documents_count == 1


def test_invoices_ordered_by_due_date_with_names_inlined() -> None:
    report = build()

    assert [item.id for item in report.invoices] == ["i1", "i2", "i3"]
    names = {item.id: item.supplier_name for item in report.invoices}
    assert names == {"i1": "Acme Steel", "i2": "Unknown supplier", "i3": "Unknown supplier"}

    first = report.invoices[0]
    assert first.has_closing_docs is True
    assert first.closing_documents[0].file_name == "act.pdf"
    assert report.invoices[1].is_overdue is True


def test_identical_inputs_give_equal_reports_except_timestamp() -> None:
    first = build()
    second = build_report(
        PROJECT,
        INVOICES,
        SUPPLIERS,
        DOCUMENTS,
        today=TODAY,
        generated_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )

    assert first == second
    assert first.generated_at != second.generated_at


def test_custom_placeholder_labels() -> None:
    report = build(unknown_supplier_label="Supplier?")
    assert report.supplier_spend[0][0] == "Supplier?"


def test_unexpected_failure_is_wrapped(monkeypatch) -> None:
    """Any failure during composition surfaces as a single ReportGenerationError."""

    def boom(*args, **kwargs):
        raise KeyError("broken")

    monkeypatch.setattr(report_module, "compute_financial_summary", boom)

    with pytest.raises(ReportGenerationError) as excinfo:
        build()

    assert isinstance(excinfo.value.__cause__, KeyError)


def test_report_is_hashable_and_its_counts_cannot_be_changed() -> None:
    report = build()

    with pytest.raises(TypeError):
        report.invoice_summary.count_by_status["paid"] = 99

    assert report.invoice_summary.count_by_status["paid"] == 1
    assert hash(report) == hash(build())


def test_documents_of_removed_invoices_are_kept() -> None:
    documents = DOCUMENTS + [
        ClosingDocument(
            id="o1", project_id="p1", invoice_id="deleted-inv", file_name="orphan-act.pdf"
        )
    ]

    report = build_report(
        PROJECT, INVOICES, SUPPLIERS, documents, today=TODAY, generated_at=STAMP
    )

    assert [d.id for d in report.orphan_documents] == ["o1"]
    assert report.orphan_documents[0].invoice_id == "deleted-inv"
    assert [d.id for d in report.general_documents] == ["g1"]
    assert all(d.id != "o1" for item in report.invoices for d in item.closing_documents)


def test_default_reference_date_is_the_local_date(monkeypatch) -> None:
    """Overdue flags follow the same local date as compute_invoice_summary."""
    monkeypatch.setattr(report_module, "_today", lambda: date(2025, 5, 15))

    report = build_report(PROJECT, INVOICES, SUPPLIERS, DOCUMENTS, generated_at=STAMP)

    # i2 is due on 2025-06-01, which is still ahead of the local date.
    assert report.invoice_summary.overdue_count == 0
    assert not any(item.is_overdue for item in report.invoices)
