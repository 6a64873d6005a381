# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Project FinSight
----------------

A Python-based financial reporting application for project-based
businesses. It consolidates a project's plan/actual figures, supplier
invoices and closing documents into a single financial report.

Main capabilities:
- invoice status classification (pending, paid, overdue, cancelled),
- supplier spend aggregation with resilient supplier resolution,
- closing document completeness checks per invoice,
- plan/actual financial summary (variances, margins, taxes, net profit),
- standalone HTML report export and console / CSV views,
- department budget overview per category,
- a database-first architecture (SQLite) fed by CSV imports.

Project FinSight separates computation (invoices, suppliers, documents,
financials, report), configuration (TOML), persistence (db) and
presentation (render, views, CLI).


Version: 0.2.0

Usage:
    python -m project_finsight.cli --help
"""

__all__ = ["financials", "invoices", "suppliers", "documents", "report", "render"]

__version__ = "0.2.0"
