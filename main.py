"""
Main entrypoint: shared-analysis API server.

Creates the history tables, then serves the FastAPI app with uvicorn in the
main thread. Env: GUARDAIO_DB_URL / DATABASE_URL / GUARDAIO_DB_PATH,
API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn guardaio.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os
import sys

# Configure structured JSON logging before other imports that may log
from guardaio.guardaio_logging import get_logger

logger = get_logger("main")


def main() -> None:
    from guardaio.config import get_settings
    from guardaio.database import get_history_store

    settings = get_settings()
    try:
        get_history_store().init_db()
    except Exception as e:
        logger.error("main_db_init_failed", error=str(e))
        sys.exit(1)

    from guardaio.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
