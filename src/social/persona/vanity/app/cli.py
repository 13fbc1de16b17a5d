import json
import logging
from logging.config import dictConfig
import os
from aiohttp import web

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure logging from LOGGING_CONFIG_FILE, or basicConfig otherwise."""
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if logging_config_file:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


def invoke():
    from social.persona.vanity.app.config import Settings
    from social.persona.vanity.app.server import start_web_server

    settings = Settings()  # type: ignore
    configure_logging(settings.debug)
    logger.info("Listening on port %s", settings.http_port)

    web.run_app(start_web_server(settings), port=settings.http_port)


if __name__ == "__main__":
    invoke()
