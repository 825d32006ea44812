"""Create the contact storage schema.

Run this once before starting the API server. Pass --reset to drop the
existing tables first.
"""

import asyncio
import sys

from beetagged.config import settings
from beetagged.db import engine
from beetagged.models import Base


async def init_database(reset: bool = False):
    """Create all database tables."""
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)

    print(f"Tables ready: {', '.join(Base.metadata.tables.keys())}")
    await engine.dispose()


async def main():
    """Main entry point."""
    try:
        await init_database(reset="--reset" in sys.argv[1:])
    except Exception as e:
        print(f"Error initializing database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
