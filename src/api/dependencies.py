"""Shared FastAPI dependencies for tenant-scoped endpoints."""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from src.database.database import get_db
from src.database.tenant_context import TenantContext, resolve_tenant, set_tenant_context
from src.services.custom_field_service import CustomFieldService
from src.services.employee_service import EmployeeService


def get_tenant_context(
    session: Annotated[Session, Depends(get_db)],
    x_tenant_id: Annotated[Optional[str], Header(alias="X-Tenant-ID")] = None,
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> TenantContext:
    """
    Resolve the request's tenant and bind it to the session transaction.

    Raises TenantNotFoundError for a missing, malformed or unknown tenant id
    and TenantInactiveError for a deactivated tenant.
    """
    tenant = resolve_tenant(session, x_tenant_id)
    return set_tenant_context(session, tenant.id, user_id=x_user_id)


def get_employee_service(
    session: Annotated[Session, Depends(get_db)],
    context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> EmployeeService:
    """Get employee service instance."""
    return EmployeeService(session, context)


def get_custom_field_service(
    session: Annotated[Session, Depends(get_db)],
    context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> CustomFieldService:
    """Get custom field service instance."""
    return CustomFieldService(session, context)
