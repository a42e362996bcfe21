"""ORM models for persisted payslips and configuration."""

from payslip_engine.models.base import Base, TimestampMixin
from payslip_engine.models.payroll import PAYSLIP_COLUMNS, MonthlySalary, SystemConfig

__all__ = [
    "Base",
    "TimestampMixin",
    "MonthlySalary",
    "SystemConfig",
    "PAYSLIP_COLUMNS",
]
