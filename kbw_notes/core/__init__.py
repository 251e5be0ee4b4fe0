# Core infrastructure
from kbw_notes.core.context import (
    clear_context,
    get_client_ip,
    get_context,
    get_request_id,
    get_user_id,
    set_client_ip,
    set_request_id,
    set_user_id,
)
from kbw_notes.core.database import init_async_cassandra, shutdown_async_cassandra
from kbw_notes.core.logging import configure_structlog, get_logger
from kbw_notes.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_client_ip",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "init_async_cassandra",
    "set_client_ip",
    "set_request_id",
    "set_user_id",
    "shutdown_async_cassandra",
]
