"""Create the database schema from the ORM models.

Run with: challenge-suite-init-db
"""

import asyncio

import structlog

from challenge_suite.config import get_settings
from challenge_suite.database import close_db, create_schema, init_db
from challenge_suite.middleware.logging import setup_logging

logger = structlog.get_logger()


async def _init_db() -> None:
    settings = get_settings()
    await init_db(settings.database_url)
    try:
        await create_schema()
        logger.info("schema_created")
    finally:
        await close_db()


def main() -> None:
    setup_logging(get_settings())
    asyncio.run(_init_db())
