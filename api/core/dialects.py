"""
SQL dialect abstraction and statement translation.

Repositories write one logical statement per query:
- `?` positional placeholders, values passed alongside in order
- dialect-specific syntax (boolean literals, date formatting, DDL types)
  obtained from the `Dialect` interface while the statement is composed

`translate()` then turns the logical statement into the executable form for
one backend: it checks the placeholder count against the values, renumbers
placeholders for `$n` backends and adapts bound values. `normalize_row()`
is the result path: backend-specific Python types become plain JSON-ready
values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .errors import DialectError, QueryShapeError

# Columns declared BOOLEAN in the schema. SQLite hands these back as 0/1.
BOOLEAN_COLUMNS = frozenset({"activo"})

# Result fields whose names contain one of these markers are numeric report
# fields: NULL becomes 0 and numeric-looking text becomes a number.
NUMERIC_FIELD_MARKERS = (
    "total",
    "sum",
    "avg",
    "promedio",
    "precio",
    "price",
    "amount",
    "valor",
    "kilos",
    "pesos",
    "ganancia",
    "margen",
    "transacciones",
    "dias_con",
)

# Text columns that happen to contain a numeric marker.
TEXT_FIELDS = frozenset({"tipo_precio", "tipo_incremento"})

DATE_FUNCTIONS = ("day", "week", "month", "year", "weekday")
DDL_FRAGMENTS = ("pk", "bool", "date", "timestamp", "now", "money", "weight")


class Dialect(ABC):
    name: str
    placeholder_style: str

    @abstractmethod
    def placeholder(self, idx: int) -> str:
        """Placeholder text for the 1-based parameter index."""

    @abstractmethod
    def bool_literal(self, value: bool) -> str:
        """Native boolean literal to embed in SQL text."""

    @abstractmethod
    def date_fn(self, name: str, column: str) -> str:
        """
        Date-formatting expression over `column`.

        day -> YYYY-MM-DD, week -> YYYY-MM-DD of the Monday opening the
        week, month -> YYYY-MM, year -> YYYY,
        weekday -> integer 0 (Sunday) .. 6 (Saturday).
        """

    @abstractmethod
    def ddl_fragment(self, kind: str) -> str:
        """Column type / default fragment used by schema creation."""

    @abstractmethod
    def adapt_value(self, value: Any) -> Any:
        """Convert a Python value to what the driver accepts for binding."""

    def returning_id(self) -> str:
        """Suffix that makes an INSERT hand back the generated primary key."""
        return " RETURNING id"


class SQLiteDialect(Dialect):
    name = "sqlite"
    placeholder_style = "qmark"

    _date_formats = {
        "day": "strftime('%Y-%m-%d', {col})",
        "week": "date({col}, 'weekday 0', '-6 days')",
        "month": "strftime('%Y-%m', {col})",
        "year": "strftime('%Y', {col})",
        "weekday": "CAST(strftime('%w', {col}) AS INTEGER)",
    }
    _ddl = {
        "pk": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "bool": "BOOLEAN",
        "date": "DATE",
        "timestamp": "DATETIME",
        "now": "DEFAULT CURRENT_TIMESTAMP",
        "money": "DECIMAL(12,2)",
        "weight": "DECIMAL(10,3)",
    }

    def placeholder(self, idx: int) -> str:
        return "?"

    def bool_literal(self, value: bool) -> str:
        return "1" if value else "0"

    def date_fn(self, name: str, column: str) -> str:
        try:
            return self._date_formats[name].format(col=column)
        except KeyError as exc:
            raise DialectError(f"Función de fecha no soportada en sqlite: {name}") from exc

    def ddl_fragment(self, kind: str) -> str:
        try:
            return self._ddl[kind]
        except KeyError as exc:
            raise DialectError(f"Fragmento DDL no soportado en sqlite: {kind}") from exc

    def adapt_value(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, Decimal):
            return float(value)
        return value

    def returning_id(self) -> str:
        # sqlite3 exposes cursor.lastrowid on the same connection instead.
        return ""


class PostgresDialect(Dialect):
    name = "postgres"
    placeholder_style = "numeric"

    _date_formats = {
        "day": "to_char({col}, 'YYYY-MM-DD')",
        "week": "to_char(date_trunc('week', CAST({col} AS TIMESTAMP)), 'YYYY-MM-DD')",
        "month": "to_char({col}, 'YYYY-MM')",
        "year": "to_char({col}, 'YYYY')",
        "weekday": "CAST(EXTRACT(DOW FROM {col}) AS INTEGER)",
    }
    _ddl = {
        "pk": "SERIAL PRIMARY KEY",
        "bool": "BOOLEAN",
        "date": "DATE",
        "timestamp": "TIMESTAMP",
        "now": "DEFAULT CURRENT_TIMESTAMP",
        "money": "NUMERIC(12,2)",
        "weight": "NUMERIC(10,3)",
    }

    def placeholder(self, idx: int) -> str:
        return f"${idx}"

    def bool_literal(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def date_fn(self, name: str, column: str) -> str:
        try:
            return self._date_formats[name].format(col=column)
        except KeyError as exc:
            raise DialectError(f"Función de fecha no soportada en postgres: {name}") from exc

    def ddl_fragment(self, kind: str) -> str:
        try:
            return self._ddl[kind]
        except KeyError as exc:
            raise DialectError(f"Fragmento DDL no soportado en postgres: {kind}") from exc

    def adapt_value(self, value: Any) -> Any:
        # asyncpg encodes NUMERIC from Decimal; floats go through str() to keep
        # the literal digits.
        if isinstance(value, float):
            return Decimal(str(value))
        return value


def dialect_for(backend: str) -> Dialect:
    if backend == "sqlite":
        return SQLiteDialect()
    if backend == "postgres":
        return PostgresDialect()
    raise DialectError(f"Dialecto desconocido: {backend}")


def _placeholder_positions(sql: str) -> list[int]:
    """
    Offsets of every `?` outside single-quoted literals and `--` comments.
    Doubled quotes inside a literal ('') are an escaped quote.
    """
    positions: list[int] = []
    in_string = False
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if in_string:
            if ch == "'":
                if i + 1 < n and sql[i + 1] == "'":
                    i += 2
                    continue
                in_string = False
        elif ch == "'":
            in_string = True
        elif ch == "-" and i + 1 < n and sql[i + 1] == "-":
            newline = sql.find("\n", i)
            if newline == -1:
                break
            i = newline
            continue
        elif ch == "?":
            positions.append(i)
        i += 1

    if in_string:
        raise QueryShapeError("Literal de texto sin cerrar en la sentencia SQL")
    return positions


def translate(sql: str, values: Sequence[Any], dialect: Dialect) -> tuple[str, tuple[Any, ...]]:
    """
    Turn a logical `?` statement into executable text for `dialect`.

    Fails with QueryShapeError when the number of placeholders does not match
    the number of values; nothing is executed in that case.
    """
    positions = _placeholder_positions(sql)
    if len(positions) != len(values):
        raise QueryShapeError(
            f"La sentencia tiene {len(positions)} marcadores pero se recibieron {len(values)} valores"
        )

    adapted = tuple(dialect.adapt_value(v) for v in values)
    if dialect.placeholder_style == "qmark":
        return sql, adapted

    parts: list[str] = []
    last = 0
    for idx, pos in enumerate(positions, start=1):
        parts.append(sql[last:pos])
        parts.append(dialect.placeholder(idx))
        last = pos + 1
    parts.append(sql[last:])
    return "".join(parts), adapted


def is_numeric_field(name: str) -> bool:
    lowered = name.lower()
    if lowered in TEXT_FIELDS:
        return False
    return any(marker in lowered for marker in NUMERIC_FIELD_MARKERS)


def _to_number(value: str) -> Any:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def normalize_value(name: str, value: Any) -> Any:
    if value is None:
        return 0 if is_numeric_field(name) else None
    if isinstance(value, bool):
        return value
    if name in BOOLEAN_COLUMNS and isinstance(value, int):
        return bool(value)
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() and value.as_tuple().exponent >= 0 else float(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and is_numeric_field(name):
        return _to_number(value)
    return value


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    return {key: normalize_value(key, value) for key, value in row.items()}
