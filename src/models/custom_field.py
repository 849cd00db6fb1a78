"""SQLAlchemy CustomField model for tenant-defined employee attributes."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.models.base import Base, JSONType, generate_uuid

if TYPE_CHECKING:
    from src.models.tenant import Tenant


class FieldType(str, enum.Enum):
    """Supported custom field value types."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"
    MULTISELECT = "multiselect"
    BOOLEAN = "boolean"

    @property
    def has_options(self) -> bool:
        return self in (FieldType.DROPDOWN, FieldType.MULTISELECT)


class CustomField(Base):
    """
    Schema record for one tenant-defined employee attribute.

    Employee rows reference definitions by ``field_name`` inside their
    ``custom_fields`` map; the definition never owns the values.
    """

    __tablename__ = "custom_fields"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Type: text, number, date, dropdown, multiselect, boolean",
    )
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    options: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)
    display_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="custom_fields")

    __table_args__ = (
        UniqueConstraint("tenant_id", "field_name", name="uq_custom_fields_tenant_name"),
    )

    def __repr__(self) -> str:
        return f"<CustomField(field_name={self.field_name}, field_type={self.field_type})>"
