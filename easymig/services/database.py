"""PyMySQL connection factory."""

import logging
from typing import Any, Callable, Dict

import pymysql

from ..models.connection import ConnectionConfig

logger = logging.getLogger(__name__)

# Signature shared by the real factory and test doubles
ConnectionFactory = Callable[[ConnectionConfig], Any]


def connection_params(
    config: ConnectionConfig,
    charset: str = "utf8mb4",
    connect_timeout: int = 10,
    read_timeout: int = 300,
) -> Dict[str, Any]:
    """Convert a ConnectionConfig to PyMySQL connection parameters."""
    host, port, unix_socket = config.host_parts()
    params: Dict[str, Any] = {
        "host": host,
        "user": config.user,
        "password": config.password,
        "database": config.database,
        "charset": charset,
        "connect_timeout": connect_timeout,
        "read_timeout": read_timeout,
        "autocommit": True,
    }
    if port:
        params["port"] = port
    if unix_socket:
        params["unix_socket"] = unix_socket
    return params


def connect(config: ConnectionConfig, charset: str = "utf8mb4", connect_timeout: int = 10):
    """
    Open a new connection to the site database.

    Raises:
        pymysql.MySQLError: if the server refuses the connection
    """
    params = connection_params(config, charset=charset, connect_timeout=connect_timeout)
    logger.debug(f"Connecting to {params['host']} as {config.user} (database {config.database})")
    return pymysql.connect(**params)
