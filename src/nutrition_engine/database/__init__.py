"""Database layer: asyncpg pool management and repositories."""

from nutrition_engine.database.connection import (
    check_database_health,
    close_database_pool,
    get_database_pool,
    init_database_pool,
)
from nutrition_engine.database.exceptions import (
    PersistenceConflictError,
    RepositoryError,
)


__all__ = [
    "PersistenceConflictError",
    "RepositoryError",
    "check_database_health",
    "close_database_pool",
    "get_database_pool",
    "init_database_pool",
]
