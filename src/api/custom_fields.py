"""API endpoints for tenant custom field definitions."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from src.api.dependencies import get_custom_field_service
from src.api.employees import SuccessResponse
from src.services.custom_field_service import CustomFieldService


custom_field_router = APIRouter(prefix="/custom-fields", tags=["Custom Fields"])


@custom_field_router.get("", response_model=SuccessResponse, summary="List Custom Fields")
def list_custom_fields(
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
    field_type: Annotated[Optional[str], Query(description="Filter by field type")] = None,
    is_required: Annotated[Optional[bool], Query(description="Filter by required flag")] = None,
) -> SuccessResponse:
    return SuccessResponse(data=service.list_fields(field_type, is_required))


@custom_field_router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Custom Field",
)
def create_custom_field(
    payload: Annotated[Any, Body()],
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
) -> SuccessResponse:
    return SuccessResponse(
        data=service.create_field(payload),
        message="Custom field created successfully",
    )


@custom_field_router.put(
    "/reorder",
    response_model=SuccessResponse,
    summary="Reorder Custom Fields",
)
def reorder_custom_fields(
    payload: Annotated[Any, Body()],
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.reorder_fields(payload))


@custom_field_router.get(
    "/statistics",
    response_model=SuccessResponse,
    summary="Custom Field Statistics",
)
def get_custom_field_statistics(
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
) -> SuccessResponse:
    return SuccessResponse(data=service.get_statistics())


@custom_field_router.patch(
    "/{field_id}",
    response_model=SuccessResponse,
    summary="Update Custom Field",
)
def update_custom_field(
    field_id: str,
    payload: Annotated[Any, Body()],
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
) -> SuccessResponse:
    return SuccessResponse(
        data=service.update_field(field_id, payload),
        message="Custom field updated successfully",
    )


@custom_field_router.delete(
    "/{field_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Custom Field",
)
def delete_custom_field(
    field_id: str,
    service: Annotated[CustomFieldService, Depends(get_custom_field_service)],
) -> Response:
    service.delete_field(field_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
