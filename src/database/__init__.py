"""Database package for connection, session and tenant context management."""

from src.database.database import (
    DatabaseConfig,
    get_db,
    get_engine,
    get_session_factory,
    session_scope,
)
from src.database.tenant_context import TenantContext, resolve_tenant, set_tenant_context

__all__ = [
    "DatabaseConfig",
    "TenantContext",
    "get_db",
    "get_engine",
    "get_session_factory",
    "resolve_tenant",
    "session_scope",
    "set_tenant_context",
]
