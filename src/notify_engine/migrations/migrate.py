"""
Database Migration Runner

Simple migration runner for the notification engine database.
"""
import asyncio
import asyncpg
import sys
from pathlib import Path

from ..config import Config


async def run_migrations():
    """Run all SQL migrations in order"""
    migrations_dir = Path(__file__).parent
    dsn = Config.get_postgres_dsn()

    print("Connecting to database...")

    try:
        conn = await asyncpg.connect(dsn)
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Connection failed: {e}")
        sys.exit(1)

    print("Connected successfully!")
    failed = 0

    try:
        # Get all SQL files sorted by name
        for sql_file in sorted(migrations_dir.glob("*.sql")):
            print(f"\nRunning migration: {sql_file.name}")

            sql = sql_file.read_text(encoding="utf-8")

            try:
                await conn.execute(sql)
                print(f"  ok {sql_file.name}")
            except asyncpg.PostgresError as e:
                failed += 1
                print(f"  error in {sql_file.name}: {e}")
                # Continue with other migrations
    finally:
        await conn.close()

    print("\nMigrations complete!" if not failed else f"\n{failed} migration(s) failed")
    if failed:
        sys.exit(1)


def main():
    asyncio.run(run_migrations())


if __name__ == "__main__":
    main()
