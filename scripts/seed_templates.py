#!/usr/bin/env python3
"""
Seed strategy templates from a YAML file
"""

import argparse
import asyncio
import logging
from pathlib import Path

from app.infrastructure.db.database import async_session_factory, close_db, init_db
from app.infrastructure.db.seed import load_template_seeds, seed_templates

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent.parent / "config" / "templates.yml"


async def run(path: Path) -> None:
    templates = load_template_seeds(path)
    logger.info(f"Loaded {len(templates)} templates from {path}")

    await init_db()
    try:
        async with async_session_factory() as session:
            count = await seed_templates(session, templates)
            await session.commit()
        logger.info(f"Completed. Seeded {count} templates.")
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed ATM / Flazh templates")
    parser.add_argument("--file", type=Path, default=DEFAULT_SEED_FILE, help="Templates YAML file")

    args = parser.parse_args()
    asyncio.run(run(args.file))
