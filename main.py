"""
ALPHA INTEL — Main Entry Point
Serves the paid alpha report API.
"""
import uvicorn
from alpha_intel.config.settings import get_settings
from alpha_intel.utils.logger import setup_logging, get_logger

logger = get_logger("main")


def run_api():
    """Run the FastAPI application."""
    settings = get_settings()
    setup_logging()
    logger.info("starting_alpha_intel", version=settings.version, port=settings.port)
    uvicorn.run(
        "alpha_intel.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run_api()
