from sqlmodel import SQLModel

from timeaccount.models.absence import AbsenceRequest
from timeaccount.models.audit import AuditLog
from timeaccount.models.base import EmployeeOwned, TimestampMixin, UUIDBase
from timeaccount.models.correction import OvertimeCorrection
from timeaccount.models.enums import (
    AbsenceStatus,
    AbsenceType,
    AuditAction,
    AuditEntityType,
    HolidayJurisdiction,
    TransactionSourceType,
    TransactionType,
)
from timeaccount.models.holiday import Holiday, HolidayYear
from timeaccount.models.monthly_balance import MonthlyBalance
from timeaccount.models.time_entry import TimeEntry
from timeaccount.models.transaction import OvertimeTransaction

__all__ = [
    "AbsenceRequest",
    "AbsenceStatus",
    "AbsenceType",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "EmployeeOwned",
    "Holiday",
    "HolidayJurisdiction",
    "HolidayYear",
    "MonthlyBalance",
    "OvertimeCorrection",
    "OvertimeTransaction",
    "SQLModel",
    "TimeEntry",
    "TimestampMixin",
    "TransactionSourceType",
    "TransactionType",
    "UUIDBase",
]
