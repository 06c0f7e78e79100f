"""
Main entrypoint: wallet activity API server.

Env: HELIUS_API_KEY, SOLANA_NETWORK, VOUCH_USE_MOCK_DATA, API_HOST, API_PORT,
LOG_LEVEL, LOG_FORMAT (see vouch_activity.config.env).

Equivalent: uvicorn vouch_activity.api_server.server:app --host 0.0.0.0 --port 8000
"""

import os

from vouch_activity.config.env import load_vouch_env
from vouch_activity.vouch_logging import configure_logging, get_logger

logger = get_logger("main")


def main() -> None:
    """Load config and run the FastAPI server in the main thread."""
    load_vouch_env()
    log_level = configure_logging()
    api_host = os.getenv("API_HOST", "0.0.0.0").strip()
    api_port = int(os.getenv("API_PORT", "8000").strip() or "8000")

    import uvicorn

    logger.info("main_api_starting", host=api_host, port=api_port, log_level=log_level)
    uvicorn.run(
        "vouch_activity.api_server.server:app",
        host=api_host,
        port=api_port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
