"""SQLAlchemy Employee model for database operations."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.models.base import Base, JSONType, generate_uuid

if TYPE_CHECKING:
    from src.models.tenant import Tenant


# Attributes a create or update may set
EMPLOYEE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "title",
    "department",
    "phone",
    "extension",
    "office_location",
    "manager_id",
    "photo_url",
    "bio",
    "skills",
    "custom_fields",
    "is_active",
)


class Employee(Base):
    """
    Tenant-scoped employee profile.

    The manager reference is self-referential; the repository keeps the
    manager graph acyclic within a tenant.
    """

    __tablename__ = "employees"

    # Primary Key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Name and contact
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    extension: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Organizational attributes
    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    office_location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    manager_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Profile
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    skills: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)
    custom_fields: Mapped[Dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=dict
    )

    # Soft-delete marker
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # =========================================================================
    # Relationships
    # =========================================================================

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="employees")
    manager: Mapped[Optional["Employee"]] = relationship(
        "Employee", remote_side=[id], back_populates="direct_reports"
    )
    direct_reports: Mapped[list["Employee"]] = relationship(
        "Employee", back_populates="manager", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_employees_tenant_email"),
        CheckConstraint(
            "manager_id IS NULL OR manager_id <> id",
            name="ck_employees_not_own_manager",
        ),
        Index("ix_employees_tenant_active", "tenant_id", "is_active"),
        Index("ix_employees_tenant_manager", "tenant_id", "manager_id"),
        Index("ix_employees_tenant_department", "tenant_id", "department"),
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, email={self.email})>"
