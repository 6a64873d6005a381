# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Project FinSight.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating the values that drive report generation,
- exposing typed dataclasses used by the rest of the application.
"""

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .db import MAX_BATCH_LOOKUP_IDS, DatabaseConfig
from .suppliers import MISSING_SUPPLIER_LABEL, UNKNOWN_SUPPLIER_LABEL

DEFAULT_CONFIG_FILE = "project_finsight_config.toml"

DISPLAY_MODES = ("table", "html", "both")


@dataclass(frozen=True)
class ReportConfig:
    """Options applied when composing and exporting project reports."""

    currency: str
    output_dir: Path
    unknown_supplier_label: str
    missing_supplier_label: str


@dataclass(frozen=True)
class GatewayConfig:
    """
    Options of the data access layer.

    batch_size:
        Number of ids per batch lookup (1 to 30).
    max_workers:
        Number of concurrent lookups when resolving suppliers.
    """

    batch_size: int
    max_workers: int


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Project FinSight.

    This aggregates:
    - the database configuration (where records are stored),
    - the report options (currency, output directory, placeholder labels),
    - the gateway options (batch lookups),
    - display and logging options for the CLI.
    """

    database: DatabaseConfig
    report: ReportConfig
    gateway: GatewayConfig
    display_mode: str
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return section


def _parse_int(
    section: Mapping[str, Any],
    key: str,
    default: int,
    *,
    name: str,
    minimum: int,
    maximum: Optional[int] = None,
) -> int:
    raw_value = section.get(key, default)
    if isinstance(raw_value, bool):
        raise ValueError(f"Invalid value for '{name}': expected an integer.")
    try:
        value = int(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{name}' in the configuration. Expected an integer."
        ) from exc

    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ValueError(f"Invalid value for '{name}': {value}, expected {bounds}.")
    return value


def _parse_report(section: Mapping[str, Any], base_dir: Path) -> ReportConfig:
    currency = str(section.get("currency") or "RUB").strip()
    if not currency:
        raise ValueError("Invalid value for 'report.currency': empty string.")

    output_dir_raw = section.get("output_dir") or "data/output"
    output_dir = (base_dir / str(output_dir_raw)).resolve()

    unknown_label = str(section.get("unknown_supplier_label") or UNKNOWN_SUPPLIER_LABEL)
    missing_label = str(section.get("missing_supplier_label") or MISSING_SUPPLIER_LABEL)

    return ReportConfig(
        currency=currency,
        output_dir=output_dir,
        unknown_supplier_label=unknown_label,
        missing_supplier_label=missing_label,
    )


def _parse_log_level(section: Mapping[str, Any]) -> str:
    level = str(section.get("level") or "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Invalid value for 'logging.level': {level!r}.")
    return level


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Project FinSight application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [database]
        Database engine ("sqlite") and SQLite file path.

    [report]
        Presentation currency, output directory of exported reports and
        the labels used for missing or unresolved suppliers.

    [gateway]
        batch_size (1 to 30) and max_workers used to resolve suppliers.

    [display]
        CLI display mode: "table", "html" or "both".

    [logging]
        Log level of the CLI ("DEBUG", "INFO", "WARNING", ...).

    Every section is optional. All file paths in the TOML are resolved
    relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``project_finsight_config.toml`` in the working directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If a value is invalid. The message names the offending key.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    if db_engine.lower() != "sqlite":
        raise ValueError(
            f"Invalid value for 'database.engine': {db_engine!r}. "
            "Only 'sqlite' is supported."
        )
    db_path_raw = database_section.get("path") or "data/db/project_finsight.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()
    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 2) Report options
    report_config = _parse_report(_section(raw, "report"), base_dir)

    # 3) Gateway options
    gateway_section = _section(raw, "gateway")
    gateway_config = GatewayConfig(
        batch_size=_parse_int(
            gateway_section,
            "batch_size",
            MAX_BATCH_LOOKUP_IDS,
            name="gateway.batch_size",
            minimum=1,
            maximum=MAX_BATCH_LOOKUP_IDS,
        ),
        max_workers=_parse_int(
            gateway_section,
            "max_workers",
            4,
            name="gateway.max_workers",
            minimum=1,
        ),
    )

    # 4) Display options
    display_mode = str(_section(raw, "display").get("mode", "html"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )

    # 5) Logging
    log_level = _parse_log_level(_section(raw, "logging"))

    return AppConfig(
        database=database_config,
        report=report_config,
        gateway=gateway_config,
        display_mode=display_mode,
        log_level=log_level,
    )
