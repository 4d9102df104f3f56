#!/usr/bin/env python3
"""Apply a SQL migration file directly to the Supabase Postgres database.

Statements are executed one by one; "already exists" / "duplicate" /
"does not exist" errors are reported as warnings so the file can be re-run.
After applying, the listed columns are verified in information_schema.

Usage:
    python scripts/run_migration.py database/competitive-channels-onboarding-columns.sql
    python scripts/run_migration.py schema.sql --verify competitive_videos:views,likes,comments
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.config import load_env_files
from fantasy_ops.database import dispose_engine, session_scope
from fantasy_ops.services.migration_runner import (
    MigrationSummary,
    describe_statement,
    fetch_columns,
    run_migration,
    split_sql_statements,
)


def parse_verify_target(value: str) -> tuple[str, list[str]]:
    """Parse "table:col1,col2" into ("table", ["col1", "col2"])."""
    table, _, columns = value.partition(":")
    if not table or not columns:
        raise argparse.ArgumentTypeError(f"Expected table:col1,col2 - got '{value}'")
    return table, [c.strip() for c in columns.split(",") if c.strip()]


def print_summary(summary: MigrationSummary) -> None:
    print("\n📊 Summary:")
    print(f"  ✅ Succeeded: {summary.succeeded}")
    print(f"  ❌ Errors: {summary.failed}")
    for message in summary.skipped_messages:
        print(f"  ⚠️  {message}")
    for message in summary.errors:
        print(f"  ❌ {message}")


async def apply_migration(sql_path: Path, verify: list[tuple[str, list[str]]]) -> MigrationSummary:
    sql = sql_path.read_text(encoding="utf-8")
    statements = split_sql_statements(sql)
    print(f"🔧 Found {len(statements)} SQL statements\n")
    for position, stmt in enumerate(statements, start=1):
        print(f"  [{position}/{len(statements)}] {describe_statement(stmt)}")

    async with session_scope() as session:
        print("\n✅ Connected to Supabase PostgreSQL")
        summary = await run_migration(session, sql)

    print_summary(summary)

    for table, columns in verify:
        print(f"\n🔍 Verifying columns in {table}...")
        async with session_scope() as session:
            found = await fetch_columns(session, table, columns)
        if found:
            for name, data_type in found:
                print(f"    - {name} ({data_type})")
        missing = sorted(set(columns) - {name for name, _ in found})
        if missing:
            print(f"  ❌ Missing columns: {', '.join(missing)}")

    return summary


async def main() -> None:
    parser = argparse.ArgumentParser(description="Apply a SQL migration to Supabase Postgres")
    parser.add_argument("sql_file", type=Path, help="Path to the .sql file")
    parser.add_argument(
        "--verify",
        action="append",
        type=parse_verify_target,
        default=[],
        help="table:col1,col2 to check after applying (repeatable)",
    )
    args = parser.parse_args()

    if not args.sql_file.exists():
        print(f"❌ Error: SQL file not found: {args.sql_file}", file=sys.stderr)
        sys.exit(1)

    load_env_files()
    print(f"📖 Reading {args.sql_file}...")

    try:
        summary = await apply_migration(args.sql_file, args.verify)
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Set DATABASE_URL or SUPABASE_DB_HOST/USER/PASSWORD in .env.supabase", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"💥 Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await dispose_engine()

    if summary.failed:
        sys.exit(1)
    print("\n🎉 Migration completed!")


if __name__ == "__main__":
    asyncio.run(main())
