from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

from edms.storage import SqlStorage, seed_sample_data

logger = logging.getLogger(__name__)


def run_seed(database_url: str, create_schema: bool = False) -> bool:
    storage = SqlStorage.from_url(database_url)
    try:
        if create_schema:
            storage.create_schema()
        inserted = seed_sample_data(storage)
    finally:
        storage.close()
    logger.info("seed_finished inserted=%s", inserted)
    return inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    url = os.getenv("DATABASE_URL")
    if not url:
        raise SystemExit("DATABASE_URL must be set; the in-memory backend seeds itself at start-up.")
    run_seed(url, create_schema=os.getenv("SEED_CREATE_SCHEMA", "").lower() in {"1", "true", "yes"})
