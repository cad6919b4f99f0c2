"""
Backend Registry

Central registry mapping database URL schemes to connection pool factories.
Backends must register themselves here to be reachable from a database URL.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .base import ConnectionPool

if TYPE_CHECKING:
    from sqlrunner.config import RunnerConfig

LOG = logging.getLogger(__name__)

PoolFactory = Callable[[str, "RunnerConfig"], ConnectionPool]

DEFAULT_SCHEME = "sqlite"


def parse_database_url(database_url: str) -> tuple[str, str]:
    """
    Split a database URL into backend scheme and location

    ``sqlite:///relative.db`` and ``sqlite:////abs/path.db`` follow the usual
    three/four slash convention; ``sqlite://`` and ``sqlite:///:memory:`` name
    an in-memory database. A bare path without a scheme is an SQLite file.

    Args:
        database_url: URL or plain file path

    Returns:
        Tuple of (scheme, location)
    """
    if "://" not in database_url:
        return DEFAULT_SCHEME, database_url

    scheme, _, rest = database_url.partition("://")
    scheme = scheme.lower()
    location = rest[1:] if rest.startswith("/") else rest
    if scheme == "sqlite" and location in ("", ":memory:"):
        location = ":memory:"
    return scheme, location


class BackendRegistryClass:
    """Registry for managing database backends"""

    def __init__(self) -> None:
        self.backends: dict[str, PoolFactory] = {}

    def register(self, scheme: str, factory: PoolFactory) -> None:
        """
        Register a backend

        Args:
            scheme: URL scheme handled by the backend (e.g., 'sqlite')
            factory: Callable creating a pool from a location and configuration

        Raises:
            ValueError: If a backend with the same scheme is already registered
        """
        if scheme in self.backends:
            raise ValueError(f"Backend for scheme '{scheme}' is already registered")

        self.backends[scheme] = factory
        LOG.debug(f"Registered database backend: {scheme}")

    def get(self, scheme: str) -> PoolFactory | None:
        return self.backends.get(scheme)

    def get_all_schemes(self) -> list[str]:
        return list(self.backends.keys())

    def has(self, scheme: str) -> bool:
        return scheme in self.backends

    def open_pool(self, database_url: str, config: RunnerConfig) -> ConnectionPool:
        """
        Create a connection pool for a database URL

        Args:
            database_url: Database URL (see ``parse_database_url``)
            config: Runner configuration supplying pool size and timeouts

        Returns:
            Connection pool from the backend registered for the URL's scheme

        Raises:
            ValueError: If no backend is registered for the scheme
        """
        scheme, location = parse_database_url(database_url)
        factory = self.get(scheme)
        if factory is None:
            available = ", ".join(self.get_all_schemes())
            raise ValueError(
                f"No database backend for scheme '{scheme}'. Available backends: {available}"
            )
        return factory(location, config)

    def clear(self) -> None:
        """Clear all registered backends (useful for testing)"""
        self.backends.clear()

    def unregister(self, scheme: str) -> None:
        self.backends.pop(scheme, None)


# Singleton instance
BackendRegistry = BackendRegistryClass()
