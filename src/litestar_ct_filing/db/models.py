"""SQLAlchemy models for CT filing persistence.

This module defines the database models for the filing engine:
- CtTypeModel: Canonical CT type definitions
- FilingPeriodModel: Statutory filing periods per customer and CT type
- ConversionAttemptModel: Independent workflow runs against a period
- WorkflowStepModel: Saved data and status of each workflow step
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import JSON, Date, Enum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from litestar_ct_filing.core.types import ConversionStatus, FilingPeriodStatus, WorkflowStepStatus

__all__ = [
    "ConversionAttemptModel",
    "CtTypeModel",
    "FilingPeriodModel",
    "WorkflowStepModel",
]


# Cross-database JSON type: uses JSONB for PostgreSQL, JSON for others (SQLite, MySQL, etc.)
JSONType = JSON().with_variant(JSONB, "postgresql")


class CtTypeModel(UUIDAuditBase):
    """A CT filing workflow type, e.g. ``"CT Type 1"``.

    Attributes:
        name: Display name; operators may customise it.
    """

    __tablename__ = "ct_types"

    name: Mapped[str] = mapped_column(String(255), unique=True)


class FilingPeriodModel(UUIDAuditBase):
    """A statutory filing period for a customer and CT type.

    Attributes:
        customer_id: Identifier of the owning customer (external system).
        ct_type_id: Foreign key to the CT type.
        user_id: User who created the period.
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory filing due date.
        status: Current lifecycle status.
        conversions: Conversion attempts run against the period.
        workflow_steps: Saved workflow step records.
    """

    __tablename__ = "ct_filing_periods"
    __table_args__ = (
        Index("ix_ct_filing_periods_customer_type", "customer_id", "ct_type_id"),
        Index("ix_ct_filing_periods_status", "status"),
        Index("ix_ct_filing_periods_due_date", "due_date"),
    )

    customer_id: Mapped[str] = mapped_column(String(255))
    ct_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("ct_types.id", ondelete="RESTRICT"),
    )
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    period_from: Mapped[date] = mapped_column(Date)
    period_to: Mapped[date] = mapped_column(Date)
    due_date: Mapped[date] = mapped_column(Date)
    status: Mapped[FilingPeriodStatus] = mapped_column(
        Enum(FilingPeriodStatus, native_enum=False, length=50),
        default=FilingPeriodStatus.NOT_STARTED,
    )

    # Relationships
    conversions: Mapped[list[ConversionAttemptModel]] = relationship(
        back_populates="period",
        lazy="noload",
        passive_deletes=True,
    )
    workflow_steps: Mapped[list[WorkflowStepModel]] = relationship(
        back_populates="period",
        lazy="noload",
        passive_deletes=True,
    )


class ConversionAttemptModel(UUIDAuditBase):
    """One independent run of the filing workflow against a period.

    Attributes:
        period_id: Foreign key to the filing period.
        ct_type_id: Foreign key to the CT type.
        user_id: User who owns the attempt.
        name: Display name, e.g. ``"Conversion 2"``.
        status: Coarse summary status.
    """

    __tablename__ = "ct_conversion_attempts"
    __table_args__ = (
        Index("ix_ct_conversion_attempts_period_type", "period_id", "ct_type_id"),
        Index("ix_ct_conversion_attempts_user_id", "user_id"),
    )

    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("ct_filing_periods.id", ondelete="CASCADE"),
    )
    ct_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("ct_types.id", ondelete="RESTRICT"),
    )
    user_id: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    status: Mapped[ConversionStatus] = mapped_column(
        Enum(ConversionStatus, native_enum=False, length=50),
        default=ConversionStatus.DRAFT,
    )

    # Relationships
    period: Mapped[FilingPeriodModel] = relationship(
        back_populates="conversions",
        lazy="noload",
    )


class WorkflowStepModel(UUIDAuditBase):
    """Saved data for one step of a period's filing workflow.

    Rows are unique per ``(period_id, ct_type_id, step_number)``; saves go
    through an upsert on that key.

    Attributes:
        customer_id: Identifier of the owning customer.
        ct_type_id: Foreign key to the CT type.
        period_id: Foreign key to the filing period.
        step_number: One-based step position.
        step_key: Stable step name.
        data: Opaque step payload.
        status: Step lifecycle status.
        user_id: User who last saved the step.
    """

    __tablename__ = "ct_workflow_steps"
    __table_args__ = (
        UniqueConstraint("period_id", "ct_type_id", "step_number", name="uq_ct_workflow_steps_period_type_step"),
        Index("ix_ct_workflow_steps_status", "status"),
    )

    customer_id: Mapped[str] = mapped_column(String(255))
    ct_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("ct_types.id", ondelete="RESTRICT"),
    )
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("ct_filing_periods.id", ondelete="CASCADE"),
    )
    step_number: Mapped[int] = mapped_column(Integer)
    step_key: Mapped[str] = mapped_column(String(255))
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    status: Mapped[WorkflowStepStatus] = mapped_column(
        Enum(WorkflowStepStatus, native_enum=False, length=50),
        default=WorkflowStepStatus.DRAFT,
    )
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    period: Mapped[FilingPeriodModel] = relationship(
        back_populates="workflow_steps",
        lazy="noload",
    )
