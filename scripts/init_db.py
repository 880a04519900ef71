"""Create the scheduling tables directly from the table metadata.

Intended for local development; deployed databases use ``scripts/migrate.py``.
"""

import asyncio

from app.config import settings
from app.database import Database
from app.models import metadata


async def init_db() -> None:
    """Create every table known to the shared metadata."""
    database = Database.from_settings(settings)
    try:
        async with database.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        print(f"✓ Created tables: {', '.join(sorted(metadata.tables))}")
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
