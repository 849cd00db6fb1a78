"""SQLAlchemy Tenant model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.models.base import Base, generate_uuid

if TYPE_CHECKING:
    from src.models.custom_field import CustomField
    from src.models.employee import Employee


class Tenant(Base):
    """
    Customer organization and data isolation boundary.

    Every employee and custom field row belongs to exactly one tenant.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    employees: Mapped[list["Employee"]] = relationship(
        "Employee", back_populates="tenant", passive_deletes=True
    )
    custom_fields: Mapped[list["CustomField"]] = relationship(
        "CustomField", back_populates="tenant", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, subdomain={self.subdomain})>"
