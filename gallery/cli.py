import sys

import structlog
import uvicorn

from gallery.config import get_settings
from gallery.log import configure_logging

logger = structlog.get_logger()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    missing = settings.missing_required()
    if missing:
        logger.error("missing_required_settings", missing=missing, mode=settings.GALLERY_MODE)
        return 1

    from gallery.main import app

    logger.info("server_starting", host=settings.HOST, port=settings.PORT, mode=settings.GALLERY_MODE)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, lifespan="on", log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
