"""Process entry point: ``python -m barbershop`` or the ``barbershop`` script."""

from __future__ import annotations

# Load .env into os.environ before settings are read
from dotenv import load_dotenv
load_dotenv()

import logging

import uvicorn

from barbershop.app import create_app
from barbershop.config import settings

log = logging.getLogger("barbershop.main")


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
    )
    # getUpdates long-polling logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        warnings = settings.validate_startup()
    except ValueError as e:
        log.critical("Startup aborted: %s", e)
        raise SystemExit(1) from e
    for warning in warnings:
        log.warning(warning)

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-20s %(levelname)-7s %(message)s"
    )

    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
