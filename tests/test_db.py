from datetime import date, datetime, timezone

import pytest

from project_finsight.db import (
    MAX_BATCH_LOOKUP_IDS,
    DatabaseConfig,
    batch_lookup,
    get_project,
    init_database,
    list_department_invoices,
    list_projects,
    query_closing_documents_by_project,
    query_invoices_by_project,
    upsert_closing_documents,
    upsert_department_invoices,
    upsert_invoices,
    upsert_projects,
    upsert_suppliers,
)
from project_finsight.models import (
    ClosingDocument,
    DepartmentInvoice,
    Invoice,
    Project,
    Supplier,
)


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "db" / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def test_init_database_creates_file_and_is_idempotent(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    init_database(cfg)
    assert cfg.path.exists()
    assert list_projects(cfg) == []


def test_unsupported_engine_is_rejected(tmp_path):
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "x.sqlite")
    with pytest.raises(ValueError):
        init_database(cfg)


def test_project_round_trip_keeps_missing_amounts(tmp_path):
    """None amounts must come back as None, not as 0."""
    cfg = make_tmp_db_cfg(tmp_path)
    project = Project(
        id="p1",
        name="Warehouse",
        number="P-001",
        due_date=date(2025, 12, 31),
        planned_budget=100_000.0,
        actual_budget=None,
        planned_revenue=200_000.55,
        usn_tax=0.0,
    )

    assert upsert_projects(cfg, [project]) == 1

    loaded = get_project(cfg, "p1")
    assert loaded == project
    assert loaded.actual_budget is None
    assert loaded.usn_tax == 0.0


def test_get_project_returns_none_when_absent(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    assert get_project(cfg, "missing") is None


def test_upsert_replaces_existing_rows(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_suppliers(cfg, [Supplier(id="s1", name="Old name")])
    upsert_suppliers(cfg, [Supplier(id="s1", name="New name")])

    assert batch_lookup(cfg, "suppliers", ["s1"]) == {
        "s1": Supplier(id="s1", name="New name")
    }


def test_invoices_and_documents_are_queried_by_project(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    uploaded = datetime(2025, 2, 1, 10, 30, tzinfo=timezone.utc)
    upsert_invoices(
        cfg,
        [
            Invoice(
                id="i1",
                project_id="p1",
                supplier_id="s1",
                amount=1_500.25,
                status="pending_payment",
                due_date=date(2025, 3, 1),
                uploaded_at=uploaded,
            ),
            Invoice(id="i2", project_id="p2", amount=None, status="paid"),
        ],
    )
    upsert_closing_documents(
        cfg,
        [
            ClosingDocument(id="d1", project_id="p1", invoice_id="i1", uploaded_at=uploaded),
            ClosingDocument(id="d2", project_id="p1", invoice_id=None),
            ClosingDocument(id="d3", project_id="p2", invoice_id="i2"),
        ],
    )

    invoices = query_invoices_by_project(cfg, "p1")
    assert [inv.id for inv in invoices] == ["i1"]
    assert invoices[0].amount == 1_500.25
    assert invoices[0].uploaded_at == uploaded
    assert invoices[0].due_date == date(2025, 3, 1)

    docs = query_closing_documents_by_project(cfg, "p1")
    assert [d.id for d in docs] == ["d1", "d2"]
    assert docs[1].invoice_id is None

    assert query_invoices_by_project(cfg, "p2")[0].amount is None


def test_batch_lookup_returns_partial_map(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_suppliers(cfg, [Supplier(id="s1", name="Acme"), Supplier(id="s2", name="Beta")])

    found = batch_lookup(cfg, "suppliers", ["s1", "missing", "s1"])

    assert found == {"s1": Supplier(id="s1", name="Acme")}
    assert batch_lookup(cfg, "suppliers", []) == {}


def test_batch_lookup_rejects_too_many_ids(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    ids = [f"s{i}" for i in range(MAX_BATCH_LOOKUP_IDS + 1)]

    with pytest.raises(ValueError):
        batch_lookup(cfg, "suppliers", ids)


def test_batch_lookup_rejects_unknown_collection(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    with pytest.raises(ValueError):
        batch_lookup(cfg, "customers", ["c1"])


def test_department_invoices_listed_by_category(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    upsert_department_invoices(
        cfg,
        [
            DepartmentInvoice(id="d2", primary_category="Office", secondary_category="Rent"),
            DepartmentInvoice(
                id="d1", primary_category="IT", secondary_category="Licenses", amount=99.9
            ),
        ],
    )

    invoices = list_department_invoices(cfg)

    assert [inv.id for inv in invoices] == ["d1", "d2"]
    assert invoices[0].amount == pytest.approx(99.9)
