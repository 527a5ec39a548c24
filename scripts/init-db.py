#!/usr/bin/env python3
"""
Database initialization script.
Creates tables, enables pgvector and installs match_knowledge_chunks.
"""
import asyncio
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from sqlalchemy import text

from copymode.core.database import init_db, engine
from copymode.core.logging import configure_logging
from copymode.services.storage_service import storage_service


async def main():
    """Initialize database and storage buckets."""
    configure_logging()
    print("🚀 Initializing database...")

    try:
        # Initialize database (creates tables, pgvector and the search function)
        await init_db()
        print("✅ Database initialized successfully!")

        async with engine.begin() as conn:
            result = await conn.execute(
                text("SELECT * FROM pg_extension WHERE extname = 'vector'")
            )
            if result.fetchone():
                print("✅ pgvector extension enabled")
            else:
                print("⚠️  pgvector extension not found")

            result = await conn.execute(
                text("SELECT proname FROM pg_proc WHERE proname = 'match_knowledge_chunks'")
            )
            if result.fetchone():
                print("✅ match_knowledge_chunks function installed")
            else:
                print("⚠️  match_knowledge_chunks function not found")

            result = await conn.execute(text("""
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = 'public'
                ORDER BY table_name
            """))
            tables = [row[0] for row in result.fetchall()]
            print(f"\n📊 Created tables: {', '.join(tables)}")

        storage_service.ensure_buckets()
        print(f"📁 Storage buckets ready under {storage_service.root}")

    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()

    print("\n🎉 Database is ready!")


if __name__ == "__main__":
    asyncio.run(main())
