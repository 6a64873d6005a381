# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exceptions raised by Project FinSight.

Only two failures ever reach the caller of a report request:

- NotFoundError: the requested project does not exist. Report generation
  stops before any computation is attempted.
- ReportGenerationError: an unexpected error happened while composing or
  rendering a report. The original exception is chained (``__cause__``).

Locally recoverable conditions (unresolved suppliers, missing numbers) are
absorbed by the aggregation modules and never raise.
"""


class ProjectFinsightError(Exception):
    """Base class for all Project FinSight errors."""


class NotFoundError(ProjectFinsightError, LookupError):
    """A referenced record does not exist in the data store."""

    def __init__(self, collection: str, record_id: str) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id!r}")


class ReportGenerationError(ProjectFinsightError, RuntimeError):
    """Report composition or rendering failed; no artifact was produced."""
