"""
Main application entry point
"""

import uvicorn
from taskhub.utils.logger import logger
from taskhub.config.settings import settings


def main():
    """Run the HTTP/realtime server"""
    try:
        settings.validate()
        logger.info(f"Starting task service on {settings.WEB_HOST}:{settings.WEB_PORT}")
        uvicorn.run(
            "taskhub.web.main:app",
            host=settings.WEB_HOST,
            port=settings.WEB_PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
