"""
mannxp.__main__ — Entry point for ``python -m mannxp``
=======================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Serve the API with uvicorn (blocking).
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from mannxp.config import load_config
from mannxp.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("mannxp")


def main() -> None:
    """Bootstrap and serve the MannXP API."""
    load_dotenv()

    try:
        cfg = load_config()
    except FileNotFoundError as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    try:
        engine = create_db_engine()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    init_db(engine)
    engine.dispose()

    logger.info("Serving MannXP API on port %d", cfg.api_port)
    uvicorn.run("mannxp.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
