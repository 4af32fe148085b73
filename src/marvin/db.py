"""MongoDB connection."""

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

from .config import Settings


def get_mongo_client(uri: str, timeout_ms: int = 3000) -> MongoClient:
    """Create a MongoDB client and check that the server answers.

    Args:
        uri: MongoDB connection string.
        timeout_ms: Server selection timeout.

    Returns:
        A connected MongoClient.

    Raises:
        RuntimeError: If the server cannot be reached.
    """
    if not uri:
        raise RuntimeError("MONGODB_URI is not set")

    client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
    try:
        client.admin.command("ping")
    except ConnectionFailure as e:
        client.close()
        raise RuntimeError("Failed to connect to MongoDB") from e
    return client


def get_database(settings: Settings, client: MongoClient | None = None) -> Database:
    """Return the application database, connecting if no client is given."""
    client = client or get_mongo_client(settings.mongodb_uri)
    return client[settings.mongodb_db_name]
