"""Utility helpers for managing the shared Neo4j driver instance."""

import logging
from typing import Optional

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from txmonitor.config import Settings, get_settings

LOGGER = logging.getLogger(__name__)

_DRIVER: Optional[Driver] = None


def _build_driver(settings: Settings) -> Driver:
    """Create and return a new Neo4j driver from the configured credentials."""
    missing = [
        key
        for key, value in {
            "NEO4J_URI": settings.neo4j_uri,
            "NEO4J_USER": settings.neo4j_user,
            "NEO4J_PASSWORD": settings.neo4j_password,
        }.items()
        if not value
    ]
    if missing:
        raise ValueError(
            "Missing Neo4j configuration. Please supply the following environment variables: "
            + ", ".join(missing)
        )

    LOGGER.info("Initializing Neo4j driver for %s", settings.neo4j_uri)
    return GraphDatabase.driver(settings.neo4j_uri, auth=(settings.neo4j_user, settings.neo4j_password))


def get_driver(settings: Optional[Settings] = None) -> Driver:
    """Return the shared Neo4j driver instance, creating it if needed."""
    global _DRIVER

    if _DRIVER is None:
        try:
            _DRIVER = _build_driver(settings or get_settings())
        except (Neo4jError, DriverError, ValueError) as exc:
            LOGGER.exception("Unable to initialize Neo4j driver: %s", exc)
            raise

    return _DRIVER


def close_driver() -> None:
    """Close the shared Neo4j driver if it has been initialized."""
    global _DRIVER

    if _DRIVER is not None:
        LOGGER.info("Closing Neo4j driver")
        _DRIVER.close()
        _DRIVER = None


__all__ = ["get_driver", "close_driver"]
