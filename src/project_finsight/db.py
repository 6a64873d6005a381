# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Project FinSight.

This module is the Data Access Gateway of the application. It stores the
records consumed by the report pipeline in a SQLite database and exposes
the read operations the report service relies on:

- fetch a single project by id,
- query the invoices and closing documents of a project,
- look up a batch of records (suppliers, projects, ...) by id.

Reports only ever *read* through this module. Writes happen through the
``upsert_*`` functions used by the CSV import commands.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) projects
   - id, name, number, customer, status, due_date, description
   - planned_budget_cents, actual_budget_cents,
     planned_revenue_cents, actual_revenue_cents,
     usn_tax_cents, nds_tax_cents

2) suppliers
   - id, name

3) invoices
   - id, project_id, supplier_id, amount_cents, status, due_date,
     file_url, file_name, uploaded_at, paid_at, comment

4) closing_documents
   - id, project_id, invoice_id, type, date, uploaded_at, file_url,
     file_name

5) department_invoices
   - id, primary_category, secondary_category, supplier_id, amount_cents,
     status, due_date, submitter_name, uploaded_at, file_url, file_name

All ids are TEXT primary keys. References between tables (invoice ->
supplier, document -> invoice) are weak: they are not enforced by foreign
keys, because the report pipeline must tolerate dangling references.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Monetary values are stored as nullable integer cents. NULL always
  round-trips to None, never to 0.
- Dates are stored as ISO "YYYY-MM-DD" text, timestamps as ISO-8601 text.
- Upserts replace the whole row of an existing id.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Optional

from .models import ClosingDocument, DepartmentInvoice, Invoice, Project, Supplier

# Upper bound of ids accepted by a single batch lookup.
MAX_BATCH_LOOKUP_IDS = 30


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Project FinSight.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    return sqlite3.connect(cfg.path)


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables and indexes if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id                    TEXT PRIMARY KEY,
            name                  TEXT,
            number                TEXT,
            customer              TEXT,
            status                TEXT,
            due_date              TEXT,
            planned_budget_cents  INTEGER,
            actual_budget_cents   INTEGER,
            planned_revenue_cents INTEGER,
            actual_revenue_cents  INTEGER,
            usn_tax_cents         INTEGER,
            nds_tax_cents         INTEGER,
            description           TEXT
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS suppliers (
            id   TEXT PRIMARY KEY,
            name TEXT NOT NULL
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS invoices (
            id           TEXT PRIMARY KEY,
            project_id   TEXT NOT NULL,
            supplier_id  TEXT,
            amount_cents INTEGER,
            status       TEXT,
            due_date     TEXT,
            file_url     TEXT,
            file_name    TEXT,
            uploaded_at  TEXT,
            paid_at      TEXT,
            comment      TEXT
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS closing_documents (
            id          TEXT PRIMARY KEY,
            project_id  TEXT NOT NULL,
            invoice_id  TEXT,
            type        TEXT,
            date        TEXT,
            uploaded_at TEXT,
            file_url    TEXT,
            file_name   TEXT
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS department_invoices (
            id                 TEXT PRIMARY KEY,
            primary_category   TEXT NOT NULL,
            secondary_category TEXT NOT NULL,
            supplier_id        TEXT,
            amount_cents       INTEGER,
            status             TEXT,
            due_date           TEXT,
            submitter_name     TEXT,
            uploaded_at        TEXT,
            file_url           TEXT,
            file_name          TEXT
        );
        """
    )

    # Indexes
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_invoices_project
            ON invoices(project_id);
        """
    )

    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_closing_documents_project
            ON closing_documents(project_id);
        """
    )

    conn.commit()


def _to_cents(value: Optional[float]) -> Optional[int]:
    """Convert an optional amount to integer cents (None stays None)."""
    if value is None:
        return None
    return int(round(float(value) * 100))


def _from_cents(value: Optional[int]) -> Optional[float]:
    if value is None:
        return None
    return float(value) / 100.0


def _to_iso(value: Any) -> Optional[str]:
    """Convert a date or datetime to ISO text (None stays None)."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Row <-> record conversion
# ---------------------------------------------------------------------------

_PROJECT_COLUMNS = (
    "id",
    "name",
    "number",
    "customer",
    "status",
    "due_date",
    "planned_budget_cents",
    "actual_budget_cents",
    "planned_revenue_cents",
    "actual_revenue_cents",
    "usn_tax_cents",
    "nds_tax_cents",
    "description",
)

_SUPPLIER_COLUMNS = ("id", "name")

_INVOICE_COLUMNS = (
    "id",
    "project_id",
    "supplier_id",
    "amount_cents",
    "status",
    "due_date",
    "file_url",
    "file_name",
    "uploaded_at",
    "paid_at",
    "comment",
)

_DOCUMENT_COLUMNS = (
    "id",
    "project_id",
    "invoice_id",
    "type",
    "date",
    "uploaded_at",
    "file_url",
    "file_name",
)

_DEPARTMENT_INVOICE_COLUMNS = (
    "id",
    "primary_category",
    "secondary_category",
    "supplier_id",
    "amount_cents",
    "status",
    "due_date",
    "submitter_name",
    "uploaded_at",
    "file_url",
    "file_name",
)


def _project_to_row(p: Project) -> tuple:
    return (
        p.id,
        p.name,
        p.number,
        p.customer,
        p.status,
        _to_iso(p.due_date),
        _to_cents(p.planned_budget),
        _to_cents(p.actual_budget),
        _to_cents(p.planned_revenue),
        _to_cents(p.actual_revenue),
        _to_cents(p.usn_tax),
        _to_cents(p.nds_tax),
        p.description,
    )


def _row_to_project(row: tuple) -> Project:
    (
        project_id,
        name,
        number,
        customer,
        status,
        due_date,
        planned_budget_cents,
        actual_budget_cents,
        planned_revenue_cents,
        actual_revenue_cents,
        usn_tax_cents,
        nds_tax_cents,
        description,
    ) = row
    return Project(
        id=project_id,
        name=name,
        number=number,
        customer=customer,
        status=status,
        due_date=_parse_date(due_date),
        planned_budget=_from_cents(planned_budget_cents),
        actual_budget=_from_cents(actual_budget_cents),
        planned_revenue=_from_cents(planned_revenue_cents),
        actual_revenue=_from_cents(actual_revenue_cents),
        usn_tax=_from_cents(usn_tax_cents),
        nds_tax=_from_cents(nds_tax_cents),
        description=description,
    )


def _supplier_to_row(s: Supplier) -> tuple:
    return (s.id, s.name)


def _row_to_supplier(row: tuple) -> Supplier:
    return Supplier(id=row[0], name=row[1])


def _invoice_to_row(inv: Invoice) -> tuple:
    return (
        inv.id,
        inv.project_id,
        inv.supplier_id,
        _to_cents(inv.amount),
        inv.status,
        _to_iso(inv.due_date),
        inv.file_url,
        inv.file_name,
        _to_iso(inv.uploaded_at),
        _to_iso(inv.paid_at),
        inv.comment,
    )


def _row_to_invoice(row: tuple) -> Invoice:
    (
        invoice_id,
        project_id,
        supplier_id,
        amount_cents,
        status,
        due_date,
        file_url,
        file_name,
        uploaded_at,
        paid_at,
        comment,
    ) = row
    return Invoice(
        id=invoice_id,
        project_id=project_id,
        supplier_id=supplier_id,
        amount=_from_cents(amount_cents),
        status=status,
        due_date=_parse_date(due_date),
        file_url=file_url,
        file_name=file_name,
        uploaded_at=_parse_datetime(uploaded_at),
        paid_at=_parse_date(paid_at),
        comment=comment,
    )


def _document_to_row(doc: ClosingDocument) -> tuple:
    return (
        doc.id,
        doc.project_id,
        doc.invoice_id,
        doc.type,
        _to_iso(doc.date),
        _to_iso(doc.uploaded_at),
        doc.file_url,
        doc.file_name,
    )


def _row_to_document(row: tuple) -> ClosingDocument:
    (
        doc_id,
        project_id,
        invoice_id,
        doc_type,
        doc_date,
        uploaded_at,
        file_url,
        file_name,
    ) = row
    return ClosingDocument(
        id=doc_id,
        project_id=project_id,
        invoice_id=invoice_id,
        type=doc_type,
        date=_parse_date(doc_date),
        uploaded_at=_parse_datetime(uploaded_at),
        file_url=file_url,
        file_name=file_name,
    )


def _department_invoice_to_row(inv: DepartmentInvoice) -> tuple:
    return (
        inv.id,
        inv.primary_category,
        inv.secondary_category,
        inv.supplier_id,
        _to_cents(inv.amount),
        inv.status,
        _to_iso(inv.due_date),
        inv.submitter_name,
        _to_iso(inv.uploaded_at),
        inv.file_url,
        inv.file_name,
    )


def _row_to_department_invoice(row: tuple) -> DepartmentInvoice:
    (
        invoice_id,
        primary_category,
        secondary_category,
        supplier_id,
        amount_cents,
        status,
        due_date,
        submitter_name,
        uploaded_at,
        file_url,
        file_name,
    ) = row
    return DepartmentInvoice(
        id=invoice_id,
        primary_category=primary_category,
        secondary_category=secondary_category,
        supplier_id=supplier_id,
        amount=_from_cents(amount_cents),
        status=status,
        due_date=_parse_date(due_date),
        submitter_name=submitter_name,
        uploaded_at=_parse_datetime(uploaded_at),
        file_url=file_url,
        file_name=file_name,
    )


@dataclass(frozen=True)
class _Collection:
    table: str
    columns: tuple[str, ...]
    from_row: Callable[[tuple], Any]


_COLLECTIONS: dict[str, _Collection] = {
    "projects": _Collection("projects", _PROJECT_COLUMNS, _row_to_project),
    "suppliers": _Collection("suppliers", _SUPPLIER_COLUMNS, _row_to_supplier),
    "invoices": _Collection("invoices", _INVOICE_COLUMNS, _row_to_invoice),
    "closing_documents": _Collection(
        "closing_documents", _DOCUMENT_COLUMNS, _row_to_document
    ),
    "department_invoices": _Collection(
        "department_invoices",
        _DEPARTMENT_INVOICE_COLUMNS,
        _row_to_department_invoice,
    ),
}


def _get_collection(name: str) -> _Collection:
    try:
        return _COLLECTIONS[name]
    except KeyError as exc:
        known = ", ".join(sorted(_COLLECTIONS))
        raise ValueError(
            f"Unknown collection: {name!r}. Expected one of: {known}."
        ) from exc


def _upsert_rows(
    cfg: DatabaseConfig,
    collection: _Collection,
    rows: Sequence[tuple],
) -> int:
    """Insert or replace rows in a table and return the number written."""
    init_database(cfg)

    if not rows:
        return 0

    cols = ", ".join(collection.columns)
    placeholders = ", ".join("?" for _ in collection.columns)
    updates = ", ".join(
        f"{col} = excluded.{col}" for col in collection.columns if col != "id"
    )
    sql = (
        f"INSERT INTO {collection.table} ({cols}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates};"
    )

    conn = _connect(cfg)
    try:
        conn.executemany(sql, rows)
        conn.commit()
    finally:
        conn.close()

    return len(rows)


def _select(
    cfg: DatabaseConfig,
    collection: _Collection,
    where: str = "",
    params: Sequence[Any] = (),
    order_by: str = "id",
) -> list[Any]:
    init_database(cfg)

    cols = ", ".join(collection.columns)
    sql = f"SELECT {cols} FROM {collection.table}"
    if where:
        sql += f" WHERE {where}"
    sql += f" ORDER BY {order_by};"

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(sql, tuple(params))
        rows = cur.fetchall()
    finally:
        conn.close()

    return [collection.from_row(row) for row in rows]


# ---------------------------------------------------------------------------
# Public API: schema and writes
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates the tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def upsert_projects(cfg: DatabaseConfig, projects: Iterable[Project]) -> int:
    """Insert or replace projects. Returns the number of rows written."""
    rows = [_project_to_row(p) for p in projects]
    return _upsert_rows(cfg, _COLLECTIONS["projects"], rows)


def upsert_suppliers(cfg: DatabaseConfig, suppliers: Iterable[Supplier]) -> int:
    """Insert or replace suppliers. Returns the number of rows written."""
    rows = [_supplier_to_row(s) for s in suppliers]
    return _upsert_rows(cfg, _COLLECTIONS["suppliers"], rows)


def upsert_invoices(cfg: DatabaseConfig, invoices: Iterable[Invoice]) -> int:
    """Insert or replace project invoices. Returns the number of rows written."""
    rows = [_invoice_to_row(inv) for inv in invoices]
    return _upsert_rows(cfg, _COLLECTIONS["invoices"], rows)


def upsert_closing_documents(
    cfg: DatabaseConfig, documents: Iterable[ClosingDocument]
) -> int:
    """Insert or replace closing documents. Returns the number of rows written."""
    rows = [_document_to_row(doc) for doc in documents]
    return _upsert_rows(cfg, _COLLECTIONS["closing_documents"], rows)


def upsert_department_invoices(
    cfg: DatabaseConfig, invoices: Iterable[DepartmentInvoice]
) -> int:
    """Insert or replace department invoices. Returns the number of rows written."""
    rows = [_department_invoice_to_row(inv) for inv in invoices]
    return _upsert_rows(cfg, _COLLECTIONS["department_invoices"], rows)


# ---------------------------------------------------------------------------
# Public API: reads
# ---------------------------------------------------------------------------


def get_project(cfg: DatabaseConfig, project_id: str) -> Project | None:
    """
    Load a single project by id.

    Returns
    -------
    Project | None
        The matching project, or None if not found.
    """
    found = _select(cfg, _COLLECTIONS["projects"], "id = ?", (project_id,))
    return found[0] if found else None


def list_projects(cfg: DatabaseConfig) -> list[Project]:
    """Return all projects ordered by number, then id."""
    return _select(
        cfg,
        _COLLECTIONS["projects"],
        order_by="COALESCE(number, ''), id",
    )


def query_invoices_by_project(cfg: DatabaseConfig, project_id: str) -> list[Invoice]:
    """Return all invoices of a project, every status included."""
    return _select(cfg, _COLLECTIONS["invoices"], "project_id = ?", (project_id,))


def query_closing_documents_by_project(
    cfg: DatabaseConfig, project_id: str
) -> list[ClosingDocument]:
    """Return all closing documents of a project (general ones included)."""
    return _select(
        cfg, _COLLECTIONS["closing_documents"], "project_id = ?", (project_id,)
    )


def list_department_invoices(cfg: DatabaseConfig) -> list[DepartmentInvoice]:
    """Return all department invoices ordered by category."""
    return _select(
        cfg,
        _COLLECTIONS["department_invoices"],
        order_by="primary_category, secondary_category, id",
    )


def batch_lookup(
    cfg: DatabaseConfig,
    collection: str,
    ids: Sequence[str],
) -> dict[str, Any]:
    """
    Look up records of a collection by id.

    Parameters
    ----------
    cfg:
        Database configuration.
    collection:
        Collection name ("suppliers", "projects", "invoices",
        "closing_documents" or "department_invoices").
    ids:
        At most MAX_BATCH_LOOKUP_IDS ids. Duplicates are allowed.

    Returns
    -------
    dict[str, Any]
        A possibly partial mapping id -> record. Ids without a matching
        record are simply absent.

    Raises
    ------
    ValueError
        If more than MAX_BATCH_LOOKUP_IDS ids are requested or the
        collection is unknown.
    """
    target = _get_collection(collection)

    unique_ids = list(dict.fromkeys(ids))
    if len(unique_ids) > MAX_BATCH_LOOKUP_IDS:
        raise ValueError(
            f"batch_lookup accepts at most {MAX_BATCH_LOOKUP_IDS} ids, "
            f"got {len(unique_ids)}."
        )
    if not unique_ids:
        return {}

    placeholders = ", ".join("?" for _ in unique_ids)
    records = _select(cfg, target, f"id IN ({placeholders})", unique_ids)
    return {record.id: record for record in records}
