import logging
from typing import Callable, Optional, Sequence

from pymongo import MongoClient
from pymongo.errors import ConfigurationError, PyMongoError
from pymongo.uri_parser import parse_uri

from gig_scrapers.config import MongoDBSettings
from gig_scrapers.schemas import EventRecord

logger = logging.getLogger(__name__)


class SinkConfigurationError(RuntimeError):
    """MongoDB connection parameters are missing or unusable."""


class SinkWriteError(RuntimeError):
    """The bulk insert into MongoDB failed."""


class MongoEventSink:
    """Bulk-inserts a run's events into a single MongoDB collection."""

    def __init__(self, settings: Optional[MongoDBSettings] = None, client_factory: Callable[..., MongoClient] = MongoClient):
        self.settings = settings or MongoDBSettings()
        self.client_factory = client_factory

    def validate_configuration(self) -> None:
        missing = [name for name in ("uri", "database", "collection") if not getattr(self.settings, name)]
        if missing:
            raise SinkConfigurationError(f"Missing MongoDB connection information: {', '.join(missing)}")
        try:
            parse_uri(self.settings.uri)
        except (ConfigurationError, ValueError) as e:
            raise SinkConfigurationError(f"Invalid MongoDB URI: {e}") from e

    def insert_events(self, events: Sequence[EventRecord]) -> int:
        """Inserts all events with one insert_many and returns how many were written."""
        self.validate_configuration()
        if not events:
            logger.info("No events provided to insert_events.")
            return 0

        db_name = self.settings.database
        collection_name = self.settings.collection
        client = None
        try:
            client = self.client_factory(self.settings.uri, serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms)
            logger.info(f"Inserting {len(events)} events into MongoDB: DB='{db_name}', Collection='{collection_name}'")
            result = client[db_name][collection_name].insert_many([event.to_document() for event in events])
            inserted = len(result.inserted_ids)
            logger.info(f"Data inserted to MongoDB ({inserted} documents).")
            return inserted
        except PyMongoError as e:
            logger.error(f"Error inserting data to MongoDB collection '{collection_name}': {e}", exc_info=True)
            raise SinkWriteError(f"Insert into '{db_name}.{collection_name}' failed: {e}") from e
        finally:
            if client is not None:
                try:
                    client.close()
                    logger.debug("MongoDB connection closed.")
                except Exception as e_close:
                    logger.error(f"Error closing MongoDB connection: {e_close}", exc_info=True)
