"""Initial CT filing tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create CT filing tables."""
    # Create ct_types table
    op.create_table(
        "ct_types",
        *_audit_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # Create ct_filing_periods table
    op.create_table(
        "ct_filing_periods",
        *_audit_columns(),
        sa.Column("customer_id", sa.String(length=255), nullable=False),
        sa.Column("ct_type_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.Column("period_from", sa.Date(), nullable=False),
        sa.Column("period_to", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(
            ["ct_type_id"],
            ["ct_types.id"],
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ct_filing_periods_customer_type",
        "ct_filing_periods",
        ["customer_id", "ct_type_id"],
    )
    op.create_index(
        "ix_ct_filing_periods_status",
        "ct_filing_periods",
        ["status"],
    )
    op.create_index(
        "ix_ct_filing_periods_due_date",
        "ct_filing_periods",
        ["due_date"],
    )

    # Create ct_conversion_attempts table
    op.create_table(
        "ct_conversion_attempts",
        *_audit_columns(),
        sa.Column("period_id", sa.Uuid(), nullable=False),
        sa.Column("ct_type_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(
            ["period_id"],
            ["ct_filing_periods.id"],
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["ct_type_id"],
            ["ct_types.id"],
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ct_conversion_attempts_period_type",
        "ct_conversion_attempts",
        ["period_id", "ct_type_id"],
    )
    op.create_index(
        "ix_ct_conversion_attempts_user_id",
        "ct_conversion_attempts",
        ["user_id"],
    )

    # Create ct_workflow_steps table
    op.create_table(
        "ct_workflow_steps",
        *_audit_columns(),
        sa.Column("customer_id", sa.String(length=255), nullable=False),
        sa.Column("ct_type_id", sa.Uuid(), nullable=False),
        sa.Column("period_id", sa.Uuid(), nullable=False),
        sa.Column("step_number", sa.Integer(), nullable=False),
        sa.Column("step_key", sa.String(length=255), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ["period_id"],
            ["ct_filing_periods.id"],
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["ct_type_id"],
            ["ct_types.id"],
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "period_id",
            "ct_type_id",
            "step_number",
            name="uq_ct_workflow_steps_period_type_step",
        ),
    )
    op.create_index(
        "ix_ct_workflow_steps_status",
        "ct_workflow_steps",
        ["status"],
    )


def downgrade() -> None:
    """Drop CT filing tables."""
    op.drop_table("ct_workflow_steps")
    op.drop_table("ct_conversion_attempts")
    op.drop_table("ct_filing_periods")
    op.drop_table("ct_types")
