"""Employee repository for data access operations."""

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import Text, and_, cast, func, or_, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config.settings import Settings, get_settings
from src.data.custom_field_repository import CustomFieldRepository
from src.models.employee import EMPLOYEE_FIELDS, Employee
from src.utils.errors import (
    APIError,
    CircularRelationshipError,
    DatabaseError,
    HierarchyIntegrityError,
    create_duplicate_email_error,
    create_field_error,
    create_not_found_error,
    create_validation_error,
)

logger = logging.getLogger(__name__)

EMAIL_UNIQUE_CONSTRAINTS = ("uq_employees_tenant_email", "uq_employees_tenant_email_lower")


@dataclass
class PaginationParams:
    """Pagination and sort parameters."""

    page: int = 1
    page_size: int = 20
    sort_by: str = "last_name"
    sort_order: str = "asc"  # 'asc' or 'desc'

    @property
    def offset(self) -> int:
        """Calculate offset from page and page_size."""
        return (self.page - 1) * self.page_size


@dataclass
class EmployeeFilters:
    """Directory filter parameters."""

    search: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    manager_id: Optional[str] = None
    # None lists active and inactive employees together
    is_active: Optional[bool] = True
    skills: List[str] = field(default_factory=list)


@dataclass
class FieldChange:
    """Old and new value of one modified attribute."""

    old: Any
    new: Any


@dataclass
class EmployeeUpdateResult:
    employee: Employee
    changes: Dict[str, FieldChange] = field(default_factory=dict)


@dataclass
class EmployeeHierarchy:
    """An employee with its management chain and direct reports."""

    employee: Employee
    management_chain: List[Employee] = field(default_factory=list)
    direct_reports: List[Employee] = field(default_factory=list)


@dataclass
class EmployeePage:
    employees: Sequence[Employee]
    page: int
    page_size: int
    total: int
    total_pages: int


@dataclass
class BulkItemOutcome:
    id: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None


@dataclass
class BulkUpdateSummary:
    total: int
    successful: int
    failed: int
    details: List[BulkItemOutcome] = field(default_factory=list)


class EmployeeRepository:
    """
    Repository for employee data access operations.

    Every method takes the tenant id first and filters on it for each read
    and write. The repository keeps the manager graph acyclic: a manager
    assignment is rejected when the target already appears in the proposed
    manager's chain.
    """

    def __init__(self, session: Session, settings: Optional[Settings] = None):
        """Initialize repository with database session."""
        self.session = session
        self.settings = settings or get_settings()
        self.custom_fields = CustomFieldRepository(session)

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_by_id(self, tenant_id: str, employee_id: str) -> Optional[Employee]:
        """Find an employee by id; inactive employees are included."""
        stmt = select(Employee).where(
            Employee.tenant_id == tenant_id,
            Employee.id == str(employee_id),
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, tenant_id: str, employee_id: str) -> Employee:
        """Load an employee or raise NotFoundError."""
        employee = self.find_by_id(tenant_id, employee_id)
        if employee is None:
            raise create_not_found_error("Employee", employee_id)
        return employee

    def find_by_email(self, tenant_id: str, email: str) -> Optional[Employee]:
        """Case-insensitive email lookup within a tenant."""
        stmt = select(Employee).where(
            Employee.tenant_id == tenant_id,
            func.lower(Employee.email) == email.lower(),
        )
        return self.session.execute(stmt).scalars().first()

    def find_by_manager(
        self,
        tenant_id: str,
        manager_id: str,
        include_inactive: bool = False,
    ) -> List[Employee]:
        """Direct reports of a manager ordered by name."""
        stmt = select(Employee).where(
            Employee.tenant_id == tenant_id,
            Employee.manager_id == str(manager_id),
        )
        if not include_inactive:
            stmt = stmt.where(Employee.is_active.is_(True))
        stmt = stmt.order_by(Employee.last_name, Employee.first_name)
        return list(self.session.execute(stmt).scalars().all())

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    def create(self, tenant_id: str, data: Dict[str, Any]) -> Employee:
        """
        Create an employee from validated data.

        Raises:
            DuplicateEmailError: If the email is already used in the tenant
            ValidationError: If the manager is missing or inactive
            SchemaValidationError: If custom fields violate the tenant schema
        """
        email = data["email"].lower()
        if self.find_by_email(tenant_id, email) is not None:
            raise create_duplicate_email_error(email)

        manager_id = data.get("manager_id")
        if manager_id:
            self._require_active_manager(tenant_id, str(manager_id))

        if data.get("custom_fields"):
            self.custom_fields.validate_custom_field_values(tenant_id, data["custom_fields"])

        values = {name: data[name] for name in EMPLOYEE_FIELDS if name in data}
        values["email"] = email
        values.setdefault("skills", [])
        values.setdefault("custom_fields", {})
        if manager_id:
            values["manager_id"] = str(manager_id)

        employee = Employee(tenant_id=tenant_id, **values)
        with self._savepoint(email):
            self.session.add(employee)

        return employee

    def update(
        self,
        tenant_id: str,
        employee_id: str,
        data: Dict[str, Any],
    ) -> EmployeeUpdateResult:
        """
        Apply a validated partial update and report what changed.

        Raises:
            NotFoundError: If the employee does not exist in the tenant
            DuplicateEmailError: If the new email is taken
            CircularRelationshipError: If the manager change would form a cycle
            ValidationError: If the new manager is missing or inactive
            SchemaValidationError: If custom fields violate the tenant schema
        """
        employee = self.get_by_id(tenant_id, employee_id)
        data = dict(data)

        if data.get("email"):
            data["email"] = data["email"].lower()
            if data["email"] != employee.email.lower():
                existing = self.find_by_email(tenant_id, data["email"])
                if existing is not None and existing.id != employee.id:
                    raise create_duplicate_email_error(data["email"])

        if data.get("manager_id"):
            new_manager_id = str(data["manager_id"])
            data["manager_id"] = new_manager_id
            if new_manager_id == employee.id:
                raise CircularRelationshipError(
                    message="An employee cannot be their own manager",
                    details={"employee_id": employee.id},
                )
            self._require_active_manager(tenant_id, new_manager_id)
            if self.would_create_circular_relationship(tenant_id, employee.id, new_manager_id):
                logger.warning(
                    "Rejected manager change for employee %s to %s in tenant %s: cycle",
                    employee.id,
                    new_manager_id,
                    tenant_id,
                )
                raise CircularRelationshipError(
                    details={"employee_id": employee.id, "manager_id": new_manager_id},
                )

        if data.get("custom_fields"):
            self.custom_fields.validate_custom_field_values(tenant_id, data["custom_fields"])

        changes: Dict[str, FieldChange] = {}
        with self._savepoint(data.get("email") or employee.email):
            for name in EMPLOYEE_FIELDS:
                if name not in data:
                    continue
                old_value = getattr(employee, name)
                new_value = data[name]
                if old_value != new_value:
                    changes[name] = FieldChange(old=old_value, new=new_value)
                    setattr(employee, name, new_value)

        return EmployeeUpdateResult(employee=employee, changes=changes)

    def soft_delete(self, tenant_id: str, employee_id: str) -> Employee:
        """Mark an employee inactive; direct reports keep their manager."""
        employee = self.get_by_id(tenant_id, employee_id)
        employee.is_active = False
        self.session.flush()
        return employee

    def hard_delete(self, tenant_id: str, employee_id: str) -> None:
        """Remove an employee row; direct reports lose their manager."""
        employee = self.get_by_id(tenant_id, employee_id)

        self.session.execute(
            update(Employee)
            .where(
                Employee.tenant_id == tenant_id,
                Employee.manager_id == employee.id,
            )
            .values(manager_id=None)
        )
        self.session.delete(employee)
        self.session.flush()

    # =========================================================================
    # Hierarchy
    # =========================================================================

    def get_management_chain(
        self,
        tenant_id: str,
        employee_id: str,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> List[Employee]:
        """
        Managers above an employee, immediate manager first, root last.

        Without ``include_inactive`` the walk stops at the first inactive
        manager.

        Raises:
            NotFoundError: If the employee does not exist in the tenant
            HierarchyIntegrityError: If the stored chain loops or exceeds the
                configured maximum depth
        """
        return list(
            self._walk_chain(tenant_id, str(employee_id), include_inactive, for_update)
        )

    def would_create_circular_relationship(
        self,
        tenant_id: str,
        employee_id: str,
        new_manager_id: str,
    ) -> bool:
        """
        Check whether managing ``employee_id`` by ``new_manager_id`` forms a cycle.

        Walks the proposed manager's chain, inactive managers included, and
        stops as soon as the employee is found. Rows are locked on databases
        that support ``SELECT ... FOR UPDATE``.
        """
        employee_id = str(employee_id)
        new_manager_id = str(new_manager_id)
        if employee_id == new_manager_id:
            return True

        for manager in self._walk_chain(
            tenant_id, new_manager_id, include_inactive=True, for_update=True
        ):
            if manager.id == employee_id:
                return True
        return False

    def get_hierarchy(self, tenant_id: str, employee_id: str) -> EmployeeHierarchy:
        """Employee with management chain and active direct reports."""
        employee = self.get_by_id(tenant_id, employee_id)
        return EmployeeHierarchy(
            employee=employee,
            management_chain=self.get_management_chain(tenant_id, employee.id),
            direct_reports=self.find_by_manager(tenant_id, employee.id),
        )

    # =========================================================================
    # Directory/List Operations
    # =========================================================================

    def find_many(
        self,
        tenant_id: str,
        filters: Optional[EmployeeFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> EmployeePage:
        """
        Get a filtered, sorted page of employees.

        Args:
            tenant_id: Tenant scope
            filters: Search filters; active employees only by default
            pagination: Page, size and sort options

        Returns:
            EmployeePage with the total count across all pages
        """
        filters = filters or EmployeeFilters()
        pagination = pagination or PaginationParams()

        stmt = select(Employee).where(Employee.tenant_id == tenant_id)
        stmt = self._apply_filters(stmt, filters)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = self.session.execute(count_stmt).scalar() or 0

        stmt = self._apply_sorting(stmt, pagination)
        stmt = stmt.offset(pagination.offset).limit(pagination.page_size)
        employees = self.session.execute(stmt).scalars().all()

        return EmployeePage(
            employees=employees,
            page=pagination.page,
            page_size=pagination.page_size,
            total=total,
            total_pages=math.ceil(total / pagination.page_size) if total else 0,
        )

    def get_statistics(self, tenant_id: str) -> Dict[str, Any]:
        """
        Headcount summary for a tenant.

        Distributions cover active employees only, ordered by count
        descending; a missing department or title counts as "Unassigned".
        """
        total = self.session.execute(
            select(func.count()).where(Employee.tenant_id == tenant_id)
        ).scalar() or 0
        active = self.session.execute(
            select(func.count()).where(
                Employee.tenant_id == tenant_id,
                Employee.is_active.is_(True),
            )
        ).scalar() or 0

        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "by_department": self._distribution(tenant_id, Employee.department, "department"),
            "by_title": self._distribution(tenant_id, Employee.title, "title", limit=10),
        }

    # =========================================================================
    # Bulk Operations
    # =========================================================================

    def bulk_update(
        self,
        tenant_id: str,
        updates: List[Dict[str, Any]],
    ) -> BulkUpdateSummary:
        """
        Apply many updates, each in its own SAVEPOINT.

        A failing item is rolled back alone and recorded; the remaining
        items still run.
        """
        details: List[BulkItemOutcome] = []

        for item in updates:
            item_id = str(item["id"])
            try:
                with self.session.begin_nested():
                    self.update(tenant_id, item_id, item["data"])
                details.append(BulkItemOutcome(id=item_id, success=True))
            except APIError as exc:
                logger.warning(
                    "Bulk update item %s failed in tenant %s: %s",
                    item_id,
                    tenant_id,
                    exc.message,
                )
                details.append(
                    BulkItemOutcome(
                        id=item_id,
                        success=False,
                        error=exc.message,
                        error_code=exc.error_code,
                    )
                )

        successful = sum(1 for outcome in details if outcome.success)
        return BulkUpdateSummary(
            total=len(details),
            successful=successful,
            failed=len(details) - successful,
            details=details,
        )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _require_active_manager(self, tenant_id: str, manager_id: str) -> Employee:
        manager = self.find_by_id(tenant_id, manager_id)
        if manager is None or not manager.is_active:
            message = (
                "Manager not found" if manager is None else "Manager must be an active employee"
            )
            raise create_validation_error(
                [create_field_error("manager_id", message, "invalid_manager")],
                message=message,
            )
        return manager

    def _walk_chain(
        self,
        tenant_id: str,
        employee_id: str,
        include_inactive: bool,
        for_update: bool,
    ) -> Iterator[Employee]:
        start = self._load_for_walk(tenant_id, employee_id, for_update)
        if start is None:
            raise create_not_found_error("Employee", employee_id)

        max_depth = self.settings.hierarchy.max_depth
        visited = {start.id}
        depth = 0
        manager_id = start.manager_id

        while manager_id is not None:
            if manager_id in visited or depth >= max_depth:
                logger.error(
                    "Management chain of employee %s in tenant %s is corrupted "
                    "(depth %d, revisited %s)",
                    employee_id,
                    tenant_id,
                    depth,
                    manager_id in visited,
                )
                raise HierarchyIntegrityError(
                    details={"employee_id": employee_id, "depth": depth},
                )
            visited.add(manager_id)

            manager = self._load_for_walk(tenant_id, manager_id, for_update)
            if manager is None:
                break
            if not include_inactive and not manager.is_active:
                break

            depth += 1
            yield manager
            manager_id = manager.manager_id

    def _load_for_walk(
        self,
        tenant_id: str,
        employee_id: str,
        for_update: bool,
    ) -> Optional[Employee]:
        stmt = select(Employee).where(
            Employee.tenant_id == tenant_id,
            Employee.id == employee_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def _apply_filters(self, stmt, filters: EmployeeFilters):
        """Apply search filters to query."""
        conditions = []

        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            conditions.append(
                or_(
                    Employee.first_name.ilike(pattern, escape="\\"),
                    Employee.last_name.ilike(pattern, escape="\\"),
                    Employee.email.ilike(pattern, escape="\\"),
                    Employee.title.ilike(pattern, escape="\\"),
                    Employee.department.ilike(pattern, escape="\\"),
                    (Employee.first_name + " " + Employee.last_name).ilike(
                        pattern, escape="\\"
                    ),
                )
            )

        if filters.department:
            conditions.append(func.lower(Employee.department) == filters.department.lower())

        if filters.title:
            conditions.append(
                Employee.title.ilike(f"%{_escape_like(filters.title)}%", escape="\\")
            )

        if filters.manager_id:
            conditions.append(Employee.manager_id == str(filters.manager_id))

        if filters.is_active is not None:
            conditions.append(Employee.is_active.is_(filters.is_active))

        for skill in filters.skills:
            conditions.append(self._has_skill(skill.lower()))

        if conditions:
            stmt = stmt.where(and_(*conditions))

        return stmt

    def _has_skill(self, skill: str):
        """Condition that the employee's skills include ``skill`` (already lower-cased)."""
        if self.session.get_bind().dialect.name == "postgresql":
            # Matches the ix_employees_skills expression index
            lowered = cast(func.lower(cast(Employee.skills, Text)), JSONB)
            return lowered.contains([skill])

        element = func.json_each(Employee.skills).table_valued("value")
        return (
            select(element.c.value)
            .where(func.lower(element.c.value) == skill)
            .exists()
        )

    def _apply_sorting(self, stmt, pagination: PaginationParams):
        """Apply sorting to query."""
        sort_columns = {
            "last_name": [Employee.last_name, Employee.first_name],
            "first_name": [Employee.first_name, Employee.last_name],
            "name": [Employee.last_name, Employee.first_name],
            "email": [Employee.email],
            "title": [Employee.title],
            "department": [Employee.department],
            "created_at": [Employee.created_at],
        }

        columns = sort_columns.get(pagination.sort_by, sort_columns["last_name"])
        descending = pagination.sort_order.lower() == "desc"
        ordering = [column.desc() if descending else column.asc() for column in columns]

        # Stable order across pages
        ordering.append(Employee.id.asc())
        return stmt.order_by(*ordering)

    def _distribution(
        self,
        tenant_id: str,
        column,
        label: str,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        count = func.count(Employee.id)
        stmt = (
            select(column, count)
            .where(Employee.tenant_id == tenant_id, Employee.is_active.is_(True))
            .group_by(column)
            .order_by(count.desc(), column)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        return [
            {label: value or "Unassigned", "count": total}
            for value, total in self.session.execute(stmt).all()
        ]

    @contextmanager
    def _savepoint(self, email: str) -> Iterator[None]:
        """Run writes in a SAVEPOINT so a lost uniqueness race stays recoverable."""
        try:
            with self.session.begin_nested():
                yield
        except IntegrityError as exc:
            if _is_email_conflict(exc):
                raise create_duplicate_email_error(email) from exc
            logger.exception("Integrity error while writing employee %s", email)
            raise DatabaseError(details={"reason": str(exc.orig)}) from exc


def _is_email_conflict(exc: IntegrityError) -> bool:
    """True when the violated constraint is one of the tenant email unique keys."""
    # psycopg2 exposes the constraint name; SQLite only names the columns
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint in EMAIL_UNIQUE_CONSTRAINTS
    message = str(exc.orig)
    return message.startswith("UNIQUE constraint failed") and "employees.email" in message


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
