from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from mysql.connector import pooling

logger = logging.getLogger(__name__)

# mysql-connector refuses larger pools
MAX_POOL_SIZE = 32


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 10
    pool_size: int = 8


class DatabaseConnection:
    """Process-wide pooled connection factory.

    Each repository call borrows a connection and returns it on close(), so
    every call is its own transaction. The pool is opened on first use and
    sized for the batch workers plus the web threads.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._pool_lock = threading.Lock()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                size = max(1, min(int(self._config.pool_size), MAX_POOL_SIZE))
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=f"hostel_attendance_{self._config.database}",
                    pool_size=size,
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                    connection_timeout=int(self._config.connection_timeout),
                )
                logger.info("Opened MySQL pool (size=%s) for %s", size, self._config.database)
            return self._pool

    def connect(self):
        return self._get_pool().get_connection()
