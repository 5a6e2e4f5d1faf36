import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from config import Settings, settings as default_settings
from database import create_database, init_schema
from directory import UserDirectory
from messages import MessageStore
from security import make_password_context

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app shell that owns the store handle.

    Routes are mounted by the HTTP layer; they reach the directory through
    get_directory / get_message_store.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_schema(settings.DATABASE_URL)
        database = create_database(settings.DATABASE_URL)
        await database.connect()
        logger.info("database connected")
        app.state.database = database
        app.state.directory = UserDirectory(database, make_password_context(settings.BCRYPT_WORK_FACTOR))
        app.state.message_store = MessageStore(database)
        try:
            yield
        finally:
            await database.disconnect()
            logger.info("database disconnected")

    return FastAPI(lifespan=lifespan)


def get_directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def get_message_store(request: Request) -> MessageStore:
    return request.app.state.message_store
