"""SQL schema loading utilities.

Applies the bundled ``core/schema/*.sql`` files to a connection.  The
schema mirrors the production review tables closely enough for local
development and tests; production databases are managed elsewhere.
"""

from __future__ import annotations

from pathlib import Path

from reviewpivot.core.dialect import Dialect, SQLiteDialect
from reviewpivot.core.logging import get_logger
from reviewpivot.core.protocols import Connection

logger = get_logger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent / "schema"


def _split_sql(sql: str) -> list[str]:
    """Split a SQL script into statements, dropping ``--`` comment lines."""
    statements: list[str] = []
    current: list[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if stripped.startswith("--") or not stripped:
            continue
        current.append(line)
        if stripped.endswith(";"):
            stmt = "\n".join(current).strip()
            if stmt and stmt != ";":
                statements.append(stmt)
            current = []
    if current:
        stmt = "\n".join(current).strip()
        if stmt:
            statements.append(stmt)
    return statements


def get_schema_files(schema_dir: Path | str | None = None) -> list[Path]:
    """Sorted ``.sql`` files (``00_``, ``01_``, ...) in *schema_dir*."""
    directory = Path(schema_dir) if schema_dir else SCHEMA_DIR
    if not directory.exists():
        return []
    return sorted(directory.glob("*.sql"))


def apply_all_schemas(conn: Connection, schema_dir: Path | str | None = None) -> list[str]:
    """Apply all SQL schema files to *conn* and commit.

    Returns
    -------
    list[str]
        Applied schema filenames.
    """
    applied = []
    for sql_file in get_schema_files(schema_dir):
        for statement in _split_sql(sql_file.read_text(encoding="utf-8")):
            conn.execute(statement)
        applied.append(sql_file.name)
        logger.debug("schema_applied", file=sql_file.name)

    conn.commit()
    logger.info("schema_all_applied", count=len(applied))
    return applied


def get_table_list(conn: Connection, dialect: Dialect | None = None) -> list[str]:
    """Names of the bundled tables that exist on *conn*."""
    dialect = dialect or SQLiteDialect()
    present = []
    for table in ("t_review_info", "t_group_category", "t_group_category_group"):
        conn.execute(dialect.table_exists_query(), (table,))
        if conn.fetchone() is not None:
            present.append(table)
    return present
