"""Database tools built on SQLAlchemy: connections, schema and read-only queries."""

from __future__ import annotations

import contextlib
import re
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url

from contextwell.tools.base import BaseTool, ToolResponse, bool_argument, int_argument, tool_metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

# First keyword of statements that cannot modify data
_READ_ONLY_STATEMENT = re.compile(r"^\s*(select|with|explain|pragma|show|describe|values)\b", re.IGNORECASE)
_WRITE_KEYWORD = re.compile(
    r"\b(insert|update|delete|merge|upsert|drop|alter|create|truncate|replace|rename|grant|revoke"
    r"|attach|detach|vacuum|reindex|analy[sz]e|into|copy|call|lock)\b",
    re.IGNORECASE,
)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_PRAGMA = re.compile(r"^pragma\s+(?:\w+\.)?(\w+)\s*(\(\s*[\w\"'`]+\s*\))?$", re.IGNORECASE)

# Pragmas that only report state when called without a value
_QUERY_PRAGMAS = frozenset({
    "application_id", "collation_list", "compile_options", "database_list", "encoding",
    "foreign_keys", "freelist_count", "function_list", "journal_mode", "module_list",
    "page_count", "page_size", "pragma_list", "schema_version", "table_list", "user_version",
})
# Introspection pragmas that take a table or index name
_TABLE_PRAGMAS = frozenset({
    "foreign_key_check", "foreign_key_list", "index_info", "index_list", "index_xinfo",
    "integrity_check", "quick_check", "table_info", "table_xinfo",
})

DEFAULT_ROW_LIMIT = 100


def _is_read_only_pragma(statement: str) -> bool:
    match = _PRAGMA.match(statement)
    if not match:
        return False
    name, argument = match.group(1).lower(), match.group(2)
    if argument:
        return name in _TABLE_PRAGMAS
    return name in _QUERY_PRAGMAS or name in _TABLE_PRAGMAS


def is_read_only_query(query: str) -> bool:
    """Conservative check that a SQL statement only reads data.

    Any write keyword outside string literals rejects the statement, so
    ``EXPLAIN ANALYZE DELETE ...`` and writable CTEs are refused. Pragmas
    are limited to known read-only names and never take a value.
    """
    stripped = query.strip().rstrip(";").strip()
    if not stripped or ";" in stripped:
        return False
    match = _READ_ONLY_STATEMENT.match(stripped)
    if not match:
        return False
    if match.group(1).lower() == "pragma":
        return _is_read_only_pragma(stripped)
    return not _WRITE_KEYWORD.search(_STRING_LITERAL.sub("''", stripped))


@contextlib.contextmanager
def read_only_connection(engine: Engine) -> Iterator[Connection]:
    """Connection whose work is always rolled back.

    SQLite and PostgreSQL additionally refuse writes at the database level.
    """
    with engine.connect() as conn:
        dialect = conn.dialect.name
        if dialect == "sqlite":
            conn.exec_driver_sql("PRAGMA query_only = ON")
        elif dialect == "postgresql":
            conn.exec_driver_sql("SET TRANSACTION READ ONLY")
        try:
            yield conn
        finally:
            conn.rollback()
            if dialect == "sqlite":
                conn.exec_driver_sql("PRAGMA query_only = OFF")


@tool_metadata(
    name="database-connections",
    description="List configured database connections",
)
class DatabaseConnectionsTool(BaseTool):
    """List the application's database connections (no credentials)."""

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        app = self.app
        connections = []
        for name, url in app.config.databases.items():
            parsed = make_url(url)
            connections.append({
                "name": name,
                "dialect": parsed.get_backend_name(),
                "database": parsed.database,
                "host": parsed.host,
            })
        try:
            default = app.connection_name()
        except KeyError:
            default = None
        return ToolResponse.json({"default_connection": default, "connections": connections})


@tool_metadata(
    name="database-schema",
    description="Table structures, columns, indexes and foreign keys",
)
class DatabaseSchemaTool(BaseTool):
    """Read the database schema.

    Start with summary=true to get table names and column types; request the
    full schema for specific tables with filter.
    """

    parameters = {
        "type": "object",
        "properties": {
            "summary": {
                "type": "boolean",
                "description": "Return only table names and column types",
            },
            "filter": {"type": "string", "description": "Only tables whose name contains this"},
            "database": {"type": "string", "description": "Connection name"},
        },
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        try:
            engine = self.app.engine(arguments.get("database"))
        except KeyError as e:
            return ToolResponse.error(str(e.args[0]))

        summary = bool_argument(arguments, "summary")
        name_filter = str(arguments.get("filter") or "").lower()

        inspector = inspect(engine)
        tables: dict[str, Any] = {}
        for table in inspector.get_table_names():
            if name_filter and name_filter not in table.lower():
                continue
            columns = inspector.get_columns(table)
            if summary:
                tables[table] = {col["name"]: str(col["type"]) for col in columns}
                continue
            tables[table] = {
                "columns": [
                    {
                        "name": col["name"],
                        "type": str(col["type"]),
                        "nullable": col.get("nullable", True),
                        "default": col.get("default"),
                    }
                    for col in columns
                ],
                "primary_key": inspector.get_pk_constraint(table).get("constrained_columns", []),
                "indexes": [
                    {"name": idx["name"], "columns": idx["column_names"], "unique": bool(idx.get("unique"))}
                    for idx in inspector.get_indexes(table)
                ],
                "foreign_keys": [
                    {
                        "columns": fk["constrained_columns"],
                        "references": f"{fk['referred_table']}({', '.join(fk['referred_columns'])})",
                    }
                    for fk in inspector.get_foreign_keys(table)
                ],
            }

        return ToolResponse.json({"engine": engine.dialect.name, "tables": tables})


@tool_metadata(
    name="database-query",
    description="Execute a read-only SQL query",
)
class DatabaseQueryTool(BaseTool):
    """Run a read-only SQL query (SELECT, WITH, EXPLAIN, PRAGMA, SHOW)."""

    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "SQL query to run"},
            "database": {"type": "string", "description": "Connection name"},
            "limit": {"type": "integer", "description": "Maximum rows to return"},
        },
        "required": ["query"],
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        query = str(arguments.get("query") or "")
        if not query.strip():
            return ToolResponse.error("The query argument is required.")
        if not is_read_only_query(query):
            return ToolResponse.error(
                "Only read-only queries are allowed (SELECT, WITH, EXPLAIN, PRAGMA, SHOW)."
            )

        try:
            engine = self.app.engine(arguments.get("database"))
        except KeyError as e:
            return ToolResponse.error(str(e.args[0]))

        limit = int_argument(arguments, "limit", DEFAULT_ROW_LIMIT)
        with read_only_connection(engine) as conn:
            result = conn.execute(text(query.strip().rstrip(";")))
            rows = [dict(row._mapping) for row in result.fetchmany(limit + 1)]

        truncated = len(rows) > limit
        return ToolResponse.json({"rows": rows[:limit], "truncated": truncated})
