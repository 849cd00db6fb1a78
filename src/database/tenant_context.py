"""Request-scoped tenant context and row-level security session binding."""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from src.models.tenant import Tenant
from src.utils.errors import TenantInactiveError, TenantNotFoundError

logger = logging.getLogger(__name__)


# Session variable read by the row-level security policies
TENANT_SETTING = "app.current_tenant"


@dataclass(frozen=True)
class TenantContext:
    """
    Identifies the tenant whose rows a single request may touch.

    Built once per request and passed explicitly to services; never cached
    or shared between requests.
    """

    tenant_id: str
    user_id: Optional[str] = None


def normalize_tenant_id(tenant_id: Optional[str]) -> str:
    """Return the canonical string form of a tenant id or raise."""
    if not tenant_id:
        raise TenantNotFoundError()
    try:
        return str(uuid.UUID(str(tenant_id)))
    except ValueError:
        raise TenantNotFoundError(
            message=f"Tenant '{tenant_id}' not found",
            details={"identifier": str(tenant_id)},
        )


def set_tenant_context(
    session: Session,
    tenant_id: str,
    user_id: Optional[str] = None,
) -> TenantContext:
    """
    Establish the isolation scope for the current transaction.

    On PostgreSQL the tenant id is written to a transaction-local setting so
    the row-level security policies see it; the value is discarded at commit
    or rollback and cannot reach another request through the pool.
    """
    normalized = normalize_tenant_id(tenant_id)

    bind = session.get_bind()
    if bind.dialect.name == "postgresql":
        session.execute(
            text("SELECT set_config(:setting, :tenant_id, true)"),
            {"setting": TENANT_SETTING, "tenant_id": normalized},
        )

    return TenantContext(tenant_id=normalized, user_id=user_id)


def resolve_tenant(session: Session, tenant_id: Optional[str]) -> Tenant:
    """Load an active tenant or raise the matching tenant error."""
    normalized = normalize_tenant_id(tenant_id)

    tenant = session.get(Tenant, normalized)
    if tenant is None:
        raise TenantNotFoundError(
            message=f"Tenant '{normalized}' not found",
            details={"identifier": normalized},
        )
    if not tenant.is_active:
        logger.warning("Rejected request for inactive tenant %s", normalized)
        raise TenantInactiveError(message=f"Tenant '{tenant.name}' is inactive")

    return tenant
