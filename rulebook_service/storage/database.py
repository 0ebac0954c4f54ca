"""
Database connection management and initialization.

Supports both SQLite (local dev) and PostgreSQL (production) via DATABASE_URL.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from rulebook_service.core.config import get_settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Engine | None = None
_DB_PATH: Path | None = None


def _is_postgres() -> bool:
    """Check if using PostgreSQL database."""
    return get_database_url().startswith("postgresql")


def get_database_url() -> str:
    """Get database URL from settings or default to SQLite.

    Handles the postgres:// URL format by converting to postgresql://.
    """
    database_url = get_settings().database_url

    if database_url and _DB_PATH is None:
        # SQLAlchemy requires postgresql://
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)
        return database_url

    return f"sqlite:///{get_db_path()}"


def get_db_path() -> Path:
    """Get the SQLite database file path (used when DATABASE_URL not set)."""
    global _DB_PATH
    if _DB_PATH is None:
        # storage/database.py -> rulebook_service/ -> project_root/
        project_root = Path(__file__).parent.parent.parent
        data_dir = project_root / "data"
        data_dir.mkdir(exist_ok=True)
        _DB_PATH = data_dir / "rulebooks.db"
    return _DB_PATH


def set_db_path(path: Path | str) -> None:
    """Set a custom SQLite database path (useful for testing)."""
    global _DB_PATH, _engine
    _DB_PATH = Path(path)
    _engine = None  # Reset engine when path changes


def _configure_sqlite(engine: Engine) -> None:
    """Make pysqlite honour transactions and foreign keys.

    pysqlite defers BEGIN until the first write, so reads inside a unit of
    work would not share a snapshot. Autocommit at the driver level plus an
    explicit BEGIN IMMEDIATE on SQLAlchemy's begin event fixes that. The
    write lock is taken up front, so a second writer blocks (up to the busy
    timeout) until the first commits, then sees its rows instead of failing
    with "database is locked".
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_engine() -> Engine:
    """Get SQLAlchemy engine for database operations."""
    global _engine
    if _engine is None:
        database_url = get_database_url()

        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        _engine = create_engine(database_url, echo=False, connect_args=connect_args)
        if database_url.startswith("sqlite"):
            _configure_sqlite(_engine)
        logger.debug("Created engine for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def reset_engine() -> None:
    """Dispose and forget the engine (useful for testing or reconfiguration)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def init_db() -> None:
    """Initialize database schema.

    Creates all tables if they don't exist. Safe to call multiple times.
    """
    with get_engine().begin() as conn:
        for statement in _statements():
            conn.execute(text(statement))


def _statements() -> list[str]:
    """Split the schema script into individual statements."""
    statements = []
    current_stmt = []
    for line in _SCHEMA.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        current_stmt.append(line)
        if stripped.endswith(";"):
            statements.append("\n".join(current_stmt).strip()[:-1])
            current_stmt = []
    return statements


# =============================================================================
# Database Schema (SQLite, PostgreSQL-compatible design)
# =============================================================================

_SCHEMA = """
-- =============================================================================
-- RULES
-- =============================================================================

CREATE TABLE IF NOT EXISTS rules (
    id TEXT PRIMARY KEY,                -- Caller supplied, immutable
    when_clause TEXT NOT NULL,          -- Condition expression
    action TEXT NOT NULL,               -- Action body
    description TEXT NOT NULL DEFAULT '',
    metadata TEXT NOT NULL DEFAULT '{}', -- JSON object
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- =============================================================================
-- RULEBOOKS
-- =============================================================================

CREATE TABLE IF NOT EXISTS rulebooks (
    id TEXT PRIMARY KEY,                -- Caller supplied name
    version INTEGER NOT NULL DEFAULT 1,
    description TEXT NOT NULL DEFAULT '',
    owner TEXT NOT NULL DEFAULT '',
    source TEXT NOT NULL DEFAULT '',
    metadata TEXT NOT NULL DEFAULT '{}', -- JSON object
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- =============================================================================
-- MEMBERSHIP (ordered)
-- =============================================================================

CREATE TABLE IF NOT EXISTS rulebook_rules (
    rulebook_id TEXT NOT NULL,
    rule_id TEXT NOT NULL,
    position INTEGER NOT NULL,          -- Application order within the rulebook
    PRIMARY KEY (rulebook_id, rule_id),
    FOREIGN KEY (rulebook_id) REFERENCES rulebooks(id) ON DELETE CASCADE,
    FOREIGN KEY (rule_id) REFERENCES rules(id) ON DELETE RESTRICT
);

CREATE INDEX IF NOT EXISTS idx_rulebook_rules_rule ON rulebook_rules(rule_id);
CREATE INDEX IF NOT EXISTS idx_rulebook_rules_position ON rulebook_rules(rulebook_id, position);
"""


def reset_db() -> None:
    """Drop all tables and recreate schema. USE WITH CAUTION."""
    with get_engine().begin() as conn:
        for table in ("rulebook_rules", "rulebooks", "rules"):
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))

    init_db()


def get_table_stats() -> dict[str, int]:
    """Get row counts for all tables (useful for diagnostics)."""
    with get_engine().connect() as conn:
        if _is_postgres():
            result = conn.execute(text(
                "SELECT table_name as name FROM information_schema.tables "
                "WHERE table_schema = 'public'"
            ))
        else:
            result = conn.execute(text(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ))
        tables = [row[0] for row in result.fetchall()]

        stats = {}
        for table in tables:
            result = conn.execute(text(f"SELECT COUNT(*) as count FROM {table}"))
            stats[table] = result.fetchone()[0]

        return stats
