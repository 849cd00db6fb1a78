"""API endpoints for the tenant employee directory."""

from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from pydantic import BaseModel

from src.api.dependencies import get_employee_service
from src.services.employee_service import FILTER_KEYS, PAGINATION_KEYS, EmployeeService


# =============================================================================
# Request/Response Models for API
# =============================================================================

class SuccessResponse(BaseModel):
    """Generic success response wrapper."""

    data: Any
    message: Optional[str] = None


class DirectoryResponse(BaseModel):
    """Response for employee directory listing."""

    data: List[Dict[str, Any]]
    pagination: Dict[str, Any]


def _query_dict(request: Request) -> Dict[str, Any]:
    """Collect recognized query parameters; repeated ``skills`` become a list."""
    params = request.query_params
    query: Dict[str, Any] = {}
    for key in FILTER_KEYS + PAGINATION_KEYS:
        if key not in params:
            continue
        values = params.getlist(key)
        query[key] = values if key == "skills" and len(values) > 1 else values[-1]
    return query


# =============================================================================
# Router Setup
# =============================================================================

employee_router = APIRouter(prefix="/employees", tags=["Employees"])


# =============================================================================
# Collection Endpoints
# =============================================================================

@employee_router.get(
    "",
    response_model=DirectoryResponse,
    summary="List Employees",
    description="Paginated employee directory with filtering and sorting.",
)
def list_employees(
    request: Request,
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> DirectoryResponse:
    """
    Get a page of the directory.

    Query parameters: search, department, title, manager_id, is_active,
    skills (comma separated or repeated), page, page_size, sort_by,
    sort_order. Only active employees are listed unless ``is_active`` is
    given.
    """
    result = service.list_employees(_query_dict(request))
    return DirectoryResponse(data=result["employees"], pagination=result["pagination"])


@employee_router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Employee",
)
def create_employee(
    payload: Annotated[Any, Body()],
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    employee = service.create_employee(payload)
    return SuccessResponse(data=employee, message="Employee created successfully")


@employee_router.post(
    "/import",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import Employee Row",
    description="Create an employee from a loosely typed import row.",
)
def import_employee(
    row: Annotated[Any, Body()],
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    employee = service.import_employee(row)
    return SuccessResponse(data=employee, message="Employee imported successfully")


@employee_router.post(
    "/bulk-update",
    response_model=SuccessResponse,
    summary="Bulk Update Employees",
    description="Apply up to 100 updates; each item succeeds or fails on its own.",
)
def bulk_update_employees(
    payload: Annotated[Any, Body()],
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    summary = service.bulk_update(payload)
    return SuccessResponse(data=summary)


@employee_router.get(
    "/statistics",
    response_model=SuccessResponse,
    summary="Directory Statistics",
)
def get_statistics(
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.get_statistics())


# =============================================================================
# Single Employee Endpoints
# =============================================================================

@employee_router.get(
    "/{employee_id}",
    response_model=SuccessResponse,
    summary="Get Employee",
)
def get_employee(
    employee_id: str,
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.get_employee(employee_id))


@employee_router.patch(
    "/{employee_id}",
    response_model=SuccessResponse,
    summary="Update Employee",
    description="Partial update; the response lists every changed field.",
)
def update_employee(
    employee_id: str,
    payload: Annotated[Any, Body()],
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    result = service.update_employee(employee_id, payload)
    return SuccessResponse(data=result, message="Employee updated successfully")


@employee_router.delete(
    "/{employee_id}",
    summary="Delete Employee",
    description="Deactivates the employee; pass hard=true to remove the record.",
    responses={204: {"description": "Employee permanently deleted"}},
)
def delete_employee(
    employee_id: str,
    service: Annotated[EmployeeService, Depends(get_employee_service)],
    hard: Annotated[bool, Query(description="Permanently delete")] = False,
):
    if hard:
        service.delete_employee(employee_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    employee = service.deactivate_employee(employee_id)
    return SuccessResponse(data=employee, message="Employee deactivated successfully")


@employee_router.get(
    "/{employee_id}/hierarchy",
    response_model=SuccessResponse,
    summary="Get Employee Hierarchy",
    description="Management chain (immediate manager first) and direct reports.",
)
def get_hierarchy(
    employee_id: str,
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.get_hierarchy(employee_id))


@employee_router.get(
    "/{employee_id}/profile",
    response_model=SuccessResponse,
    summary="Get Employee Profile",
    description="Employee, custom field definitions and profile completeness.",
)
def get_profile(
    employee_id: str,
    service: Annotated[EmployeeService, Depends(get_employee_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.get_employee_profile(employee_id))
