import math

import pytest

from project_finsight.financials import (
    compute_financial_summary,
    cost_usage_percent,
    is_over_budget,
    non_cancelled,
)
from project_finsight.models import Invoice, Project


def make_scenario_project() -> Project:
    return Project(
        id="p1",
        name="Warehouse fit-out",
        planned_budget=100_000.0,
        actual_budget=120_000.0,
        planned_revenue=200_000.0,
        actual_revenue=210_000.0,
        usn_tax=3_000.0,
        nds_tax=0.0,
    )


def make_scenario_invoices() -> list[Invoice]:
    return [
        Invoice(id="i1", project_id="p1", amount=50_000.0, status="paid"),
        Invoice(id="i2", project_id="p1", amount=70_000.0, status="pending_payment"),
        Invoice(id="i3", project_id="p1", amount=10_000.0, status="cancelled"),
    ]


def test_financial_summary_reference_project() -> None:
    """Plan/actual figures of a reference project give the documented summary."""
    invoices = non_cancelled(make_scenario_invoices())
    fs = compute_financial_summary(make_scenario_project(), invoices)

    assert fs.total_spent == pytest.approx(123_000.0)
    assert fs.remaining_cost == pytest.approx(-3_000.0)
    assert fs.budget_variance == pytest.approx(20_000.0)
    assert fs.budget_variance_percent == pytest.approx(20.0)
    assert fs.revenue_variance == pytest.approx(10_000.0)
    assert fs.revenue_variance_percent == pytest.approx(5.0)
    assert fs.planned_margin == pytest.approx(50.0)
    assert fs.actual_margin == pytest.approx(42.857, abs=1e-3)
    assert fs.margin_variance_percent == pytest.approx(-7.143, abs=1e-3)
    assert fs.gross_profit == pytest.approx(90_000.0)
    assert fs.estimated_net_profit == pytest.approx(87_000.0)


def test_cancelled_invoices_passed_by_mistake_are_ignored() -> None:
    """Cancelled invoices never count as spend, even when not filtered upstream."""
    fs = compute_financial_summary(make_scenario_project(), make_scenario_invoices())
    assert fs.total_spent == pytest.approx(123_000.0)


def test_financial_summary_is_deterministic() -> None:
    project = make_scenario_project()
    invoices = non_cancelled(make_scenario_invoices())

    assert compute_financial_summary(project, invoices) == compute_financial_summary(
        project, invoices
    )


@pytest.mark.parametrize("planned_revenue", [None, 0.0])
def test_margin_guards_against_missing_or_zero_revenue(planned_revenue) -> None:
    project = Project(
        id="p1",
        planned_budget=0.0,
        actual_budget=100.0,
        planned_revenue=planned_revenue,
        actual_revenue=0.0,
    )
    fs = compute_financial_summary(project, [])

    assert fs.planned_margin is None
    assert fs.actual_margin is None
    assert fs.margin_variance_percent is None
    assert fs.budget_variance_percent is None
    assert fs.revenue_variance_percent is None


def test_missing_figures_propagate_as_none() -> None:
    """Missing project figures give None, not zero, except total_spent."""
    project = Project(id="p1")
    invoices = [Invoice(id="i1", project_id="p1", amount=None, status="paid")]

    fs = compute_financial_summary(project, invoices)

    assert fs.total_spent == 0.0
    assert fs.remaining_cost is None
    assert fs.budget_variance is None
    assert fs.revenue_variance is None
    assert fs.gross_profit is None
    assert fs.estimated_net_profit is None
    for value in (fs.planned_margin, fs.actual_margin):
        assert value is None or not math.isnan(value)


def test_missing_taxes_count_as_zero() -> None:
    project = Project(id="p1", actual_budget=80.0, actual_revenue=100.0)
    invoices = [Invoice(id="i1", project_id="p1", amount=30.0, status="paid")]

    fs = compute_financial_summary(project, invoices)

    assert fs.total_spent == pytest.approx(30.0)
    assert fs.estimated_net_profit == pytest.approx(20.0)


@pytest.mark.parametrize(
    ("spent", "budget", "expected"),
    [
        (50.0, 100.0, 50.0),
        (150.0, 100.0, 100.0),
        (-10.0, 100.0, 0.0),
        (10.0, None, 0.0),
        (10.0, 0.0, 0.0),
    ],
)
def test_cost_usage_percent_is_bounded(spent, budget, expected) -> None:
    assert cost_usage_percent(spent, budget) == pytest.approx(expected)


def test_is_over_budget() -> None:
    assert is_over_budget(123_000.0, 120_000.0) is True
    assert is_over_budget(100.0, 120.0) is False
    assert is_over_budget(100.0, None) is False
