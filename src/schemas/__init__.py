"""Pydantic schemas for custom field definitions."""

from src.schemas.custom_field import (
    CustomFieldCreateRequest,
    CustomFieldDefinition,
    CustomFieldReorderRequest,
    CustomFieldResponse,
    CustomFieldUpdateRequest,
    FieldOrder,
    to_definition,
)

__all__ = [
    "CustomFieldCreateRequest",
    "CustomFieldDefinition",
    "CustomFieldReorderRequest",
    "CustomFieldResponse",
    "CustomFieldUpdateRequest",
    "FieldOrder",
    "to_definition",
]
