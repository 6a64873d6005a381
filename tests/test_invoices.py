from datetime import date, datetime, timedelta

import pytest

from project_finsight.invoices import compute_invoice_summary, is_overdue
from project_finsight.models import DepartmentInvoice, Invoice

TODAY = date(2025, 6, 15)


def make_invoice(invoice_id: str, **kwargs) -> Invoice:
    return Invoice(id=invoice_id, project_id="p1", **kwargs)


def test_pending_invoice_due_yesterday_is_overdue_and_pending() -> None:
    """A pending invoice past due counts once as overdue and stays pending."""
    invoices = [
        make_invoice(
            "i1",
            amount=1_000.0,
            status="pending_payment",
            due_date=TODAY - timedelta(days=1),
        )
    ]

    summary = compute_invoice_summary(invoices, today=TODAY)

    assert summary.overdue_count == 1
    assert summary.count_by_status == {"pending_payment": 1}
    assert summary.pending_amount == 1_000.0


def test_invoice_due_today_is_not_overdue() -> None:
    invoice = make_invoice("i1", status="pending_payment", due_date=TODAY)
    assert is_overdue(invoice, TODAY) is False


def test_overdue_status_and_past_due_count_once() -> None:
    invoice = make_invoice("i1", status="overdue", due_date=TODAY - timedelta(days=30))

    summary = compute_invoice_summary([invoice], today=TODAY)

    assert summary.overdue_count == 1
    assert summary.count_by_status == {"overdue": 1}


def test_paid_and_cancelled_invoices_are_never_overdue() -> None:
    past = TODAY - timedelta(days=10)
    invoices = [
        make_invoice("i1", status="paid", due_date=past),
        make_invoice("i2", status="cancelled", due_date=past),
    ]

    summary = compute_invoice_summary(invoices, today=TODAY)

    assert summary.overdue_count == 0


def test_missing_status_goes_to_unknown_and_counts_add_up() -> None:
    invoices = [
        make_invoice("i1", status="paid"),
        make_invoice("i2", status=None),
        make_invoice("i3", status="pending_payment", amount=None),
        make_invoice("i4", status="disputed"),
        make_invoice("i5", status="cancelled", amount=500.0),
    ]

    summary = compute_invoice_summary(invoices, today=TODAY)

    assert summary.count_by_status["unknown"] == 1
    assert summary.count_by_status["disputed"] == 1
    assert summary.total_count == len(invoices)
    assert summary.pending_amount == 0.0


def test_datetime_due_dates_and_department_invoices_are_supported() -> None:
    dept = DepartmentInvoice(
        id="d1",
        primary_category="IT",
        secondary_category="Licenses",
        status="pending_payment",
        due_date=datetime(2025, 6, 14, 23, 59),
    )
    assert is_overdue(dept, TODAY) is True


def test_empty_input_gives_zero_summary() -> None:
    summary = compute_invoice_summary([], today=TODAY)

    assert summary.count_by_status == {}
    assert summary.overdue_count == 0
    assert summary.pending_amount == 0.0


def test_summary_counts_are_read_only() -> None:
    invoices = [
        make_invoice("i1", status="paid"),
        make_invoice("i2", status="cancelled"),
        make_invoice("i3", status="paid"),
    ]

    summary = compute_invoice_summary(invoices, today=TODAY)

    assert summary.status_counts == (("cancelled", 1), ("paid", 2))
    with pytest.raises(TypeError):
        summary.count_by_status["paid"] = 99
    assert summary.count_by_status["paid"] == 2
    assert hash(summary) == hash(compute_invoice_summary(invoices, today=TODAY))
