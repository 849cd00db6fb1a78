"""Custom field definition repository."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.custom_field import CustomField, FieldType
from src.schemas.custom_field import FieldDefinitionBase, to_definition
from src.services.custom_field_validator import (
    collect_custom_field_errors,
    validate_field_options,
)
from src.utils.errors import (
    SchemaValidationError,
    create_duplicate_error,
    create_field_error,
    create_not_found_error,
    create_validation_error,
)

logger = logging.getLogger(__name__)


class CustomFieldRepository:
    """
    Repository for tenant custom field definitions.

    Every method is scoped by ``tenant_id``.
    """

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by_id(self, tenant_id: str, field_id: str) -> Optional[CustomField]:
        stmt = select(CustomField).where(
            CustomField.tenant_id == tenant_id,
            CustomField.id == str(field_id),
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, tenant_id: str, field_id: str) -> CustomField:
        """Load a definition or raise NotFoundError."""
        custom_field = self.find_by_id(tenant_id, field_id)
        if custom_field is None:
            raise create_not_found_error("Custom field", field_id)
        return custom_field

    def find_by_name(self, tenant_id: str, field_name: str) -> Optional[CustomField]:
        """Case-insensitive lookup by field name."""
        stmt = select(CustomField).where(
            CustomField.tenant_id == tenant_id,
            func.lower(CustomField.field_name) == field_name.lower(),
        )
        return self.session.execute(stmt).scalars().first()

    def find_many(
        self,
        tenant_id: str,
        field_type: Optional[str] = None,
        is_required: Optional[bool] = None,
    ) -> Sequence[CustomField]:
        """List definitions ordered by display order, then name."""
        stmt = select(CustomField).where(CustomField.tenant_id == tenant_id)

        if field_type is not None:
            stmt = stmt.where(CustomField.field_type == FieldType(field_type).value)
        if is_required is not None:
            stmt = stmt.where(CustomField.is_required == is_required)

        stmt = stmt.order_by(CustomField.display_order, CustomField.field_name)
        return self.session.execute(stmt).scalars().all()

    def get_definitions(self, tenant_id: str) -> List[FieldDefinitionBase]:
        """Typed definitions for value checks; malformed rows are skipped."""
        definitions = []
        for row in self.find_many(tenant_id):
            try:
                definitions.append(to_definition(row))
            except PydanticValidationError:
                logger.warning(
                    "Skipping malformed custom field %s for tenant %s",
                    row.field_name,
                    tenant_id,
                )
        return definitions

    def get_statistics(self, tenant_id: str) -> Dict[str, Any]:
        """Counts of definitions overall, required, and per field type."""
        stmt = (
            select(CustomField.field_type, func.count())
            .where(CustomField.tenant_id == tenant_id)
            .group_by(CustomField.field_type)
        )
        by_type = {field_type.value: 0 for field_type in FieldType}
        for field_type, count in self.session.execute(stmt).all():
            by_type[field_type] = count

        required_stmt = select(func.count()).where(
            CustomField.tenant_id == tenant_id,
            CustomField.is_required.is_(True),
        )
        required = self.session.execute(required_stmt).scalar() or 0

        return {
            "total": sum(by_type.values()),
            "required": required,
            "by_type": by_type,
        }

    # =========================================================================
    # Commands
    # =========================================================================

    def create(self, tenant_id: str, data: Dict[str, Any]) -> CustomField:
        """
        Create a definition from validated data.

        A missing ``display_order`` places the field after the current last.

        Raises:
            DuplicateError: If the tenant already has a field with that name
        """
        field_name = data["field_name"]
        if self.find_by_name(tenant_id, field_name) is not None:
            raise create_duplicate_error("Custom field", "field_name", field_name)

        display_order = data.get("display_order")
        if display_order is None:
            display_order = self._next_display_order(tenant_id)

        custom_field = CustomField(
            tenant_id=tenant_id,
            field_name=field_name,
            field_type=FieldType(data["field_type"]).value,
            is_required=bool(data.get("is_required", False)),
            options=data.get("options"),
            display_order=display_order,
        )
        with self._savepoint(field_name):
            self.session.add(custom_field)

        logger.info(
            "Created custom field %s (%s) for tenant %s",
            field_name,
            custom_field.field_type,
            tenant_id,
        )
        return custom_field

    def update(self, tenant_id: str, field_id: str, data: Dict[str, Any]) -> CustomField:
        """
        Apply a validated partial update.

        The merged type and options are re-checked together; switching to a
        type without options clears them.
        """
        custom_field = self.get_by_id(tenant_id, field_id)

        new_name = data.get("field_name")
        if new_name and new_name.lower() != custom_field.field_name.lower():
            if self.find_by_name(tenant_id, new_name) is not None:
                raise create_duplicate_error("Custom field", "field_name", new_name)

        field_type = FieldType(data.get("field_type") or custom_field.field_type)
        if "options" in data:
            options = data["options"]
        elif field_type.has_options:
            options = custom_field.options
        else:
            options = None

        options_result = validate_field_options(field_type.value, options)
        if not options_result.valid:
            raise create_validation_error(
                [create_field_error("options", message) for message in options_result.errors],
                message="Custom field validation failed",
            )

        with self._savepoint(new_name or custom_field.field_name):
            if new_name:
                custom_field.field_name = new_name
            custom_field.field_type = field_type.value
            custom_field.options = options
            if data.get("is_required") is not None:
                custom_field.is_required = data["is_required"]
            if data.get("display_order") is not None:
                custom_field.display_order = data["display_order"]

        logger.info("Updated custom field %s for tenant %s", custom_field.id, tenant_id)
        return custom_field

    def delete(self, tenant_id: str, field_id: str) -> None:
        """
        Delete a definition.

        Values already stored on employee records are left in place.
        """
        custom_field = self.get_by_id(tenant_id, field_id)
        self.session.delete(custom_field)
        self.session.flush()
        logger.info(
            "Deleted custom field %s (%s) for tenant %s",
            custom_field.id,
            custom_field.field_name,
            tenant_id,
        )

    def reorder(
        self,
        tenant_id: str,
        field_orders: List[Dict[str, Any]],
    ) -> Sequence[CustomField]:
        """Assign new display orders; every id must belong to the tenant."""
        ids = [str(item["id"]) for item in field_orders]
        stmt = select(CustomField).where(
            CustomField.tenant_id == tenant_id,
            CustomField.id.in_(ids),
        )
        fields = {f.id: f for f in self.session.execute(stmt).scalars().all()}

        missing = [field_id for field_id in ids if field_id not in fields]
        if missing:
            raise create_not_found_error("Custom field", ", ".join(missing))

        for item in field_orders:
            fields[str(item["id"])].display_order = item["display_order"]

        self.session.flush()
        return self.find_many(tenant_id)

    # =========================================================================
    # Value validation
    # =========================================================================

    def validate_custom_field_values(
        self,
        tenant_id: str,
        values: Optional[Mapping[str, Any]],
    ) -> None:
        """
        Check a custom field map against the tenant's definitions.

        Raises:
            SchemaValidationError: Listing every violation
        """
        errors = collect_custom_field_errors(self.find_many(tenant_id), values)
        if errors:
            raise SchemaValidationError(
                message="Custom field validation failed",
                details={"errors": errors},
                field_errors=[
                    create_field_error("custom_fields", message, "schema")
                    for message in errors
                ],
            )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _next_display_order(self, tenant_id: str) -> int:
        stmt = select(func.max(CustomField.display_order)).where(
            CustomField.tenant_id == tenant_id
        )
        current = self.session.execute(stmt).scalar()
        return (current or 0) + 1

    @contextmanager
    def _savepoint(self, field_name: str) -> Iterator[None]:
        """Run writes in a SAVEPOINT, mapping a unique violation to DuplicateError."""
        try:
            with self.session.begin_nested():
                yield
        except IntegrityError as exc:
            raise create_duplicate_error("Custom field", "field_name", field_name) from exc
