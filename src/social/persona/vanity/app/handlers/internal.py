import logging
from aiohttp import web
from sqlalchemy import text

from social.persona.vanity.app.config import DatabaseSessionMakerAppKey

logger = logging.getLogger(__name__)


async def handle_internal_ready(request: web.Request):
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    try:
        async with database_session_maker() as database_session:
            await database_session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("handle_internal_ready: database unavailable")
        return web.Response(status=503)
    return web.Response(status=200)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)
