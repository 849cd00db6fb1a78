"""Create tenants, employees and custom_fields tables with row-level security.

Revision ID: 001
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Tables filtered by the app.current_tenant session setting
TENANT_SCOPED_TABLES = ("employees", "custom_fields")


def upgrade() -> None:
    """Create directory tables, constraints, indexes and tenant policies."""

    op.create_table(
        "tenants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subdomain", sa.String(100), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("extension", sa.String(20), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("department", sa.String(200), nullable=True),
        sa.Column("office_location", sa.String(200), nullable=True),
        sa.Column(
            "manager_id",
            sa.String(36),
            sa.ForeignKey("employees.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column(
            "skills",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "custom_fields",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("tenant_id", "email", name="uq_employees_tenant_email"),
        sa.CheckConstraint(
            "manager_id IS NULL OR manager_id <> id",
            name="ck_employees_not_own_manager",
        ),
    )

    op.create_index("ix_employees_tenant_active", "employees", ["tenant_id", "is_active"])
    op.create_index("ix_employees_tenant_manager", "employees", ["tenant_id", "manager_id"])
    op.create_index("ix_employees_tenant_department", "employees", ["tenant_id", "department"])
    op.create_index(
        "uq_employees_tenant_email_lower",
        "employees",
        ["tenant_id", sa.text("lower(email)")],
        unique=True,
    )
    # Case-insensitive skill containment: lower(skills::text)::jsonb @> '["python"]'
    op.create_index(
        "ix_employees_skills",
        "employees",
        [sa.text("(lower(skills::text)::jsonb)")],
        postgresql_using="gin",
    )

    op.create_table(
        "custom_fields",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column(
            "field_type",
            sa.String(50),
            nullable=False,
            comment="Type: text, number, date, dropdown, multiselect, boolean",
        ),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("options", postgresql.JSONB, nullable=True),
        sa.Column("display_order", sa.Integer, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("tenant_id", "field_name", name="uq_custom_fields_tenant_name"),
        sa.CheckConstraint(
            "field_type IN ('text', 'number', 'date', 'dropdown', 'multiselect', 'boolean')",
            name="ck_custom_fields_field_type",
        ),
    )

    op.create_index("ix_custom_fields_tenant_order", "custom_fields", ["tenant_id", "display_order"])

    # Row-level security keyed on the transaction-local tenant setting
    for table in TENANT_SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
        op.execute(
            f"""
            CREATE POLICY tenant_isolation_{table} ON {table}
                USING (tenant_id = current_setting('app.current_tenant', true))
                WITH CHECK (tenant_id = current_setting('app.current_tenant', true))
            """
        )


def downgrade() -> None:
    """Drop directory tables and policies."""
    for table in reversed(TENANT_SCOPED_TABLES):
        op.execute(f"DROP POLICY IF EXISTS tenant_isolation_{table} ON {table}")

    op.drop_index("ix_custom_fields_tenant_order", table_name="custom_fields")
    op.drop_table("custom_fields")

    op.drop_index("ix_employees_skills", table_name="employees")
    op.drop_index("uq_employees_tenant_email_lower", table_name="employees")
    op.drop_index("ix_employees_tenant_department", table_name="employees")
    op.drop_index("ix_employees_tenant_manager", table_name="employees")
    op.drop_index("ix_employees_tenant_active", table_name="employees")
    op.drop_table("employees")

    op.drop_table("tenants")
