#!/usr/bin/env python3
"""
Delete every row of agent_knowledge_chunks.
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from copymode.core.database import AsyncSessionLocal, engine
from copymode.services.vector_service import vector_service


async def main():
    if "--yes" not in sys.argv:
        answer = input("⚠️  This deletes ALL knowledge chunks of ALL agents. Continue? [y/N] ")
        if answer.strip().lower() != "y":
            print("Aborted")
            return

    async with AsyncSessionLocal() as db:
        try:
            count = await vector_service.purge_all_chunks(db)
            print(f"✅ Deleted {count} knowledge chunks")
        except Exception as e:
            print(f"❌ Error: {e}")
            sys.exit(1)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
