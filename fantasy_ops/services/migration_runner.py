"""Raw SQL migration runner.

Applies a hand-written SQL file to the hosted Postgres database one statement
at a time. Migrations are written to be re-runnable (`IF NOT EXISTS`), but
older files are not, so errors that only mean "this was already applied" are
reported as warnings and counted as successes.

Each statement runs inside its own SAVEPOINT: a failed statement is rolled
back alone and the remaining statements still execute. The outer transaction
is committed by the caller (see `fantasy_ops.database.session_scope`).

Usage:
    async with session_scope() as session:
        summary = await run_migration(session, Path("schema.sql").read_text())
"""

import re
from dataclasses import dataclass, field

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

log = structlog.get_logger(__name__)

IGNORABLE_ERROR_MARKERS = ("already exists", "duplicate", "does not exist")

_ALTER_TABLE = re.compile(r"ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?([\w.\"]+)", re.IGNORECASE)
_CREATE_INDEX = re.compile(
    r"CREATE\s+(?:UNIQUE\s+)?INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?([\w.\"]+)",
    re.IGNORECASE,
)
_COMMENT_ON = re.compile(r"COMMENT\s+ON\s+\w+\s+(\S+)", re.IGNORECASE)
_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([\w.\"]+)", re.IGNORECASE)


@dataclass
class MigrationSummary:
    """Counters and messages collected while applying a migration.

    Attributes:
        succeeded: Statements executed or skipped as already applied
        failed: Statements that raised a real error
        skipped_messages: First line of each ignorable error
        errors: First line of each real error
    """

    succeeded: int = 0
    failed: int = 0
    skipped_messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


def split_sql_statements(sql: str) -> list[str]:
    """Split a SQL script into statements.

    Splits on ";" and drops empty chunks and chunks that start with a comment
    ("--" or "/*"). Dollar-quoted bodies containing ";" are not supported.
    """
    statements = []
    for chunk in sql.split(";"):
        stmt = chunk.strip()
        if not stmt or stmt.startswith("--") or stmt.startswith("/*"):
            continue
        statements.append(stmt)
    return statements


def describe_statement(stmt: str) -> str:
    """Short label for progress output, e.g. "ALTER TABLE competitive_videos"."""
    for label, pattern in (
        ("ALTER TABLE", _ALTER_TABLE),
        ("CREATE INDEX", _CREATE_INDEX),
        ("COMMENT ON", _COMMENT_ON),
        ("CREATE TABLE", _CREATE_TABLE),
    ):
        match = pattern.search(stmt)
        if match:
            return f"{label} {match.group(1)}"
    return "SQL"


def is_ignorable_error(message: str) -> bool:
    """True when an error only means the change is already in place."""
    lowered = message.lower()
    return any(marker in lowered for marker in IGNORABLE_ERROR_MARKERS)


def _first_line(error: Exception) -> str:
    message = str(getattr(error, "orig", None) or error)
    return message.strip().split("\n")[0]


async def run_migration(session: AsyncSession, sql: str) -> MigrationSummary:
    """Execute every statement of a SQL script.

    Args:
        session: Open async session (caller commits)
        sql: Full SQL script text

    Returns:
        MigrationSummary with success/failure counters
    """
    statements = split_sql_statements(sql)
    summary = MigrationSummary()
    log.info("migration_started", statements=len(statements))

    for position, stmt in enumerate(statements, start=1):
        label = describe_statement(stmt)
        try:
            async with session.begin_nested():
                await session.execute(text(stmt))
        except DBAPIError as e:
            message = _first_line(e)
            if is_ignorable_error(message):
                summary.succeeded += 1
                summary.skipped_messages.append(message)
                log.warning("migration_statement_skipped", position=position, operation=label, reason=message)
            else:
                summary.failed += 1
                summary.errors.append(message)
                log.error("migration_statement_failed", position=position, operation=label, error=message)
            continue

        summary.succeeded += 1
        log.info("migration_statement_applied", position=position, operation=label)

    log.info("migration_finished", succeeded=summary.succeeded, failed=summary.failed)
    return summary


async def fetch_columns(session: AsyncSession, table: str, columns: list[str]) -> list[tuple[str, str]]:
    """Look up (column_name, data_type) pairs in information_schema.columns.

    Only columns that exist are returned, ordered by name.
    """
    if not columns:
        return []
    result = await session.execute(
        text(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = :table AND column_name = ANY(:columns) "
            "ORDER BY column_name"
        ),
        {"table": table, "columns": list(columns)},
    )
    return [(row[0], row[1]) for row in result.all()]
