"""Start the back-office API under uvicorn, configured from the environment."""
import logging
import os
import uvicorn

logger = logging.getLogger(__name__)


def run():
    # Get host and port from environment, default to 0.0.0.0:8000
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))

    logger.info(f"Starting back-office service on {host}:{port}")

    uvicorn.run(
        "backoffice.main:app",
        host=host,
        port=port,
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    run()
