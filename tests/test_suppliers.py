import logging

import pytest

from project_finsight.financials import compute_financial_summary, non_cancelled
from project_finsight.models import Invoice, Project, Supplier
from project_finsight.suppliers import (
    MISSING_SUPPLIER_LABEL,
    UNKNOWN_SUPPLIER_LABEL,
    aggregate_supplier_spend,
    resolve_supplier_name,
)

SUPPLIERS = {
    "s1": Supplier(id="s1", name="Acme Steel"),
    "s2": Supplier(id="s2", name="Beta Logistics"),
}


def make_invoice(invoice_id: str, supplier_id, amount, status="paid") -> Invoice:
    return Invoice(
        id=invoice_id,
        project_id="p1",
        supplier_id=supplier_id,
        amount=amount,
        status=status,
    )


def test_supplier_spend_sorted_by_amount_then_name() -> None:
    invoices = [
        make_invoice("i1", "s1", 100.0),
        make_invoice("i2", "s2", 300.0),
        make_invoice("i3", "s1", 200.0),
        make_invoice("i4", None, 300.0),
    ]

    spend = aggregate_supplier_spend(invoices, SUPPLIERS)

    assert spend == [
        ("Acme Steel", 300.0),
        ("Beta Logistics", 300.0),
        (MISSING_SUPPLIER_LABEL, 300.0),
    ]


def test_unresolved_supplier_is_kept_under_placeholder(caplog) -> None:
    """An invoice of an unknown supplier stays in the table with its amount."""
    invoices = [
        make_invoice("i1", "s1", 100.0),
        make_invoice("i2", "deleted-supplier", 250.0),
    ]

    with caplog.at_level(logging.WARNING, logger="project_finsight.suppliers"):
        spend = aggregate_supplier_spend(invoices, SUPPLIERS)

    assert spend == [(UNKNOWN_SUPPLIER_LABEL, 250.0), ("Acme Steel", 100.0)]
    assert "deleted-supplier" in caplog.text


def test_cancelled_and_amountless_invoices_are_excluded() -> None:
    invoices = [
        make_invoice("i1", "s1", 100.0),
        make_invoice("i2", "s1", 1_000.0, status="cancelled"),
        make_invoice("i3", "s2", None),
    ]

    spend = aggregate_supplier_spend(invoices, SUPPLIERS)

    assert spend == [("Acme Steel", 100.0)]


def test_supplier_totals_match_invoice_spend() -> None:
    invoices = [
        make_invoice("i1", "s1", 120.5),
        make_invoice("i2", "s2", 79.5),
        make_invoice("i3", "s2", 50.0, status="pending_payment"),
    ]

    spend = aggregate_supplier_spend(invoices, SUPPLIERS)

    assert sum(amount for _, amount in spend) == pytest.approx(250.0)


def test_custom_labels_and_pre_resolved_names() -> None:
    invoice = make_invoice("i1", "zzz", 10.0)

    assert (
        resolve_supplier_name(invoice, SUPPLIERS, unknown_label="?", warn=False) == "?"
    )
    spend = aggregate_supplier_spend(
        [invoice], SUPPLIERS, names_by_invoice={"i1": "Resolved elsewhere"}
    )
    assert spend == [("Resolved elsewhere", 10.0)]


def test_empty_input_gives_empty_table() -> None:
    assert aggregate_supplier_spend([], SUPPLIERS) == []


def test_supplier_totals_equal_total_spent_without_taxes() -> None:
    project = Project(id="p1", usn_tax=1_500.0, nds_tax=2_400.0)
    invoices = [
        make_invoice("i1", "s1", 10_000.0),
        make_invoice("i2", "s2", 4_250.5, status="pending_payment"),
        make_invoice("i3", "s1", 900.0, status="overdue"),
        make_invoice("i4", "s2", 50_000.0, status="cancelled"),
    ]

    spend = aggregate_supplier_spend(invoices, SUPPLIERS)
    fs = compute_financial_summary(project, non_cancelled(invoices))

    assert sum(amount for _, amount in spend) == pytest.approx(
        fs.total_spent - project.usn_tax - project.nds_tax
    )
    assert sum(amount for _, amount in spend) == pytest.approx(15_150.5)
