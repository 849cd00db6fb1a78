"""Custom field definition service."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.data.custom_field_repository import CustomFieldRepository
from src.database.tenant_context import TenantContext
from src.models.custom_field import CustomField
from src.schemas.custom_field import CustomFieldResponse
from src.services.custom_field_validator import (
    FIELD_TYPES,
    validate_create_custom_field,
    validate_reorder_custom_fields,
    validate_update_custom_field,
)
from src.utils.errors import create_field_error, create_validation_error

logger = logging.getLogger(__name__)


class CustomFieldService:
    """Manages the tenant's custom field schema."""

    def __init__(self, session: Session, context: TenantContext):
        self.session = session
        self.context = context
        self.repository = CustomFieldRepository(session)

    @property
    def tenant_id(self) -> str:
        return self.context.tenant_id

    def list_fields(
        self,
        field_type: Optional[str] = None,
        is_required: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        if field_type is not None and field_type not in FIELD_TYPES:
            message = f"Unknown field type: {field_type}"
            raise create_validation_error(
                [create_field_error("field_type", message)],
                message=message,
            )
        fields = self.repository.find_many(self.tenant_id, field_type, is_required)
        return [self._build_response(f) for f in fields]

    def create_field(self, payload: Any) -> Dict[str, Any]:
        data = validate_create_custom_field(payload)
        custom_field = self.repository.create(self.tenant_id, data)
        return self._build_response(custom_field)

    def update_field(self, field_id: str, payload: Any) -> Dict[str, Any]:
        data = validate_update_custom_field(payload)
        custom_field = self.repository.update(self.tenant_id, field_id, data)
        return self._build_response(custom_field)

    def delete_field(self, field_id: str) -> None:
        self.repository.delete(self.tenant_id, field_id)

    def reorder_fields(self, payload: Any) -> List[Dict[str, Any]]:
        field_orders = validate_reorder_custom_fields(payload)
        fields = self.repository.reorder(self.tenant_id, field_orders)
        logger.info(
            "Reordered %d custom fields for tenant %s",
            len(field_orders),
            self.tenant_id,
        )
        return [self._build_response(f) for f in fields]

    def get_statistics(self) -> Dict[str, Any]:
        return self.repository.get_statistics(self.tenant_id)

    def _build_response(self, custom_field: CustomField) -> Dict[str, Any]:
        return CustomFieldResponse.model_validate(custom_field).model_dump(mode="json")
