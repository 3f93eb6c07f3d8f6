"""Database connection module for the forum."""

from forum.core.database.async_cassandra import (
    ALL_TABLES_CQL,
    AsyncCassandraConnection,
    init_async_cassandra,
    init_async_tables,
    shutdown_async_cassandra,
)


__all__ = [
    "ALL_TABLES_CQL",
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "init_async_tables",
    "shutdown_async_cassandra",
]
