# server.py

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from pymongo import AsyncMongoClient

from calculator_api.config import COLLECTION_NAME, ConfigurationError, Settings
from calculator_api.main import create_app
from calculator_api.store import CalculationStore

logger = logging.getLogger(__name__)


async def connect_to_mongo(settings: Settings) -> AsyncMongoClient:
    """
    Opens the single client shared by every request and checks the server answers.
    """
    logger.info("Attempting to connect to MongoDB...")
    logger.info("Connection URL: %s", settings.redacted_uri())
    client = AsyncMongoClient(settings.mongodb_uri, tz_aware=True)
    try:
        await client.admin.command("ping")
    except Exception:
        await client.close()
        raise
    logger.info("Successfully connected to MongoDB")
    logger.info("Database: %s", settings.mongodb_db)
    return client


def build_app(client: AsyncMongoClient, settings: Settings):
    """Wires the store to the client's calculations collection."""
    collection = client[settings.mongodb_db][COLLECTION_NAME]

    @asynccontextmanager
    async def lifespan(app):
        yield
        await client.close()
        logger.info("MongoDB connection closed")

    return create_app(CalculationStore(collection), lifespan=lifespan)


async def serve(settings: Settings):
    """
    Connects once and serves on the same event loop the client was created on.
    A failed connection exits the process; there is no retry.
    """
    try:
        client = await connect_to_mongo(settings)
    except Exception:
        logger.exception("MongoDB connection error")
        sys.exit(1)

    app = build_app(client, settings)
    server = uvicorn.Server(uvicorn.Config(app, host=settings.host, port=settings.port))
    logger.info("Server running on port %d", settings.port)
    await server.serve()


def run_server():
    """Loads settings, configures logging and runs the service until stopped."""
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(serve(settings))


if __name__ == "__main__":
    run_server()
