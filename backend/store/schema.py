"""
Table definitions for the analytics store.

The column tuples below are the only place column order is written down.
CREATE TABLE statements and the positional INSERT statements of both
backends are generated from them.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping


@dataclass(frozen=True)
class Column:
    name: str
    type: str = "text"
    not_null: bool = False
    primary_key: bool = False


@dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[Column, ...]
    indexes: tuple[tuple[str, str], ...] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)


VISITS = Table(
    name="visits",
    columns=(
        Column("id", primary_key=True),
        Column("session_id", not_null=True),
        Column("ts", not_null=True),
        Column("page"),
        Column("referrer"),
        Column("utm_source"),
        Column("utm_medium"),
        Column("utm_campaign"),
        Column("utm_content"),
        Column("utm_term"),
        Column("ip"),
        Column("country"),
        Column("region"),
        Column("city"),
        Column("isp"),
        Column("lat", "real"),
        Column("lon", "real"),
        Column("geo_tz"),
        Column("ua"),
        Column("browser"),
        Column("browser_ver"),
        Column("os"),
        Column("os_ver"),
        Column("device"),
        Column("screen_w", "integer"),
        Column("screen_h", "integer"),
        Column("lang"),
        Column("client_tz"),
    ),
    indexes=(
        ("idx_v_session", "session_id"),
        ("idx_v_ts", "ts"),
        ("idx_v_utm_src", "utm_source"),
        ("idx_v_country", "country"),
    ),
)

EVENTS = Table(
    name="events",
    columns=(
        Column("id", primary_key=True),
        Column("session_id", not_null=True),
        Column("ts", not_null=True),
        Column("type", not_null=True),
        Column("asset_id"),
        Column("asset_title"),
        Column("asset_category"),
        Column("page"),
        Column("utm_source"),
        Column("utm_campaign"),
        Column("utm_term"),
    ),
    indexes=(
        ("idx_e_session", "session_id"),
        ("idx_e_ts", "ts"),
        ("idx_e_type", "type"),
        ("idx_e_asset", "asset_id"),
    ),
)

TABLES = (VISITS, EVENTS)

SQLITE_TYPES = {"text": "TEXT", "real": "REAL", "integer": "INTEGER"}
POSTGRES_TYPES = {"text": "TEXT", "real": "DOUBLE PRECISION", "integer": "INTEGER"}


def create_table_sql(table: Table, types: Mapping[str, str]) -> str:
    definitions = []
    for column in table.columns:
        parts = [column.name, types[column.type]]
        if column.primary_key:
            parts.append("PRIMARY KEY")
        elif column.not_null:
            parts.append("NOT NULL")
        definitions.append(" ".join(parts))
    body = ",\n  ".join(definitions)
    return f"CREATE TABLE IF NOT EXISTS {table.name} (\n  {body}\n)"


def create_index_sql(table: Table) -> list[str]:
    return [
        f"CREATE INDEX IF NOT EXISTS {index_name} ON {table.name}({column})"
        for index_name, column in table.indexes
    ]


def schema_statements(types: Mapping[str, str]) -> list[str]:
    """All DDL for both tables, tables first, in a stable order."""
    statements = [create_table_sql(table, types) for table in TABLES]
    for table in TABLES:
        statements.extend(create_index_sql(table))
    return statements


def insert_sql(table: Table, placeholders: list[str], suffix: str = "", verb: str = "INSERT") -> str:
    columns = ",".join(table.column_names)
    values = ",".join(placeholders)
    sql = f"{verb} INTO {table.name} ({columns}) VALUES ({values})"
    return f"{sql} {suffix}" if suffix else sql


def iso_timestamp(moment: datetime | None = None) -> str:
    """
    Formats a moment as zero-padded UTC ISO-8601 with millisecond precision,
    e.g. ``2026-10-18T09:05:03.120Z``. Strings in this form sort in
    chronological order, which the window filters rely on.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def build_row(table: Table, data: Mapping[str, Any]) -> tuple:
    """
    Lays out an attribute bag as a positional row for ``table``.

    A generated id and the current time fill in for missing or null ``id``
    and ``ts``. Unknown keys are dropped and absent columns become None.
    """
    values: dict[str, Any] = {"id": str(uuid.uuid4()), "ts": iso_timestamp()}
    values.update(
        (key, value)
        for key, value in data.items()
        if key in table.column_names and not (key in ("id", "ts") and value is None)
    )
    return tuple(values.get(name) for name in table.column_names)
