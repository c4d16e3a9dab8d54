"""Entry point for the standalone server process."""

import uvicorn

from wabba_server.config import settings
from wabba_server.main import app


def main() -> None:
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
