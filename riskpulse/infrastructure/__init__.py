"""
Infrastructure package for riskpulse.

Centralizes store connectivity concerns (connection pooling, gateways,
change polling). Keep this layer focused on I/O and resource management,
decoupled from CSV parsing and validation.
"""

from riskpulse.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
)
from riskpulse.infrastructure.gateway import (
    InMemoryGateway,
    PersistenceGateway,
    PostgresGateway,
)

__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "InMemoryGateway",
    "PersistenceGateway",
    "PostgresGateway",
]
