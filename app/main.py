import logging

import uvicorn

from apps.blog.main import create_app
from apps.shared.config import Settings
from apps.shared.request_logging import configure_logging

settings = Settings.from_env()
configure_logging(settings.log_level)

logger = logging.getLogger("blog-service")

app = create_app(settings)


def run() -> None:
    """Start the blog server on the configured port."""
    logger.info(f"Blog server running on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
