"""Entry point for serving the thread merge API."""

import uvicorn

from thread_merge.shared.config import get_settings
from thread_merge.shared.logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "thread_merge.web.api.app:api",
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
