from __future__ import annotations

import enum


class AbsenceType(enum.StrEnum):
    """Kind of absence; decides how a covered working day is credited."""

    VACATION = "vacation"
    SICK = "sick"
    UNPAID = "unpaid"
    OVERTIME_COMP = "overtime_comp"
    SPECIAL = "special"


class AbsenceStatus(enum.StrEnum):
    """Approval state of an absence request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(enum.StrEnum):
    """Type of a time-account ledger row."""

    EARNED = "EARNED"
    COMPENSATION = "COMPENSATION"
    CORRECTION = "CORRECTION"
    CARRYOVER = "CARRYOVER"
    VACATION_CREDIT = "VACATION_CREDIT"
    SICK_CREDIT = "SICK_CREDIT"
    SPECIAL_CREDIT = "SPECIAL_CREDIT"
    UNPAID_ADJUSTMENT = "UNPAID_ADJUSTMENT"

    @property
    def label(self) -> str:
        return _TRANSACTION_LABELS[self]


_TRANSACTION_LABELS = {
    TransactionType.EARNED: "Worked time vs. target",
    TransactionType.COMPENSATION: "Overtime compensation",
    TransactionType.CORRECTION: "Manual correction",
    TransactionType.CARRYOVER: "Year carryover",
    TransactionType.VACATION_CREDIT: "Vacation credit",
    TransactionType.SICK_CREDIT: "Sick leave credit",
    TransactionType.SPECIAL_CREDIT: "Special leave credit",
    TransactionType.UNPAID_ADJUSTMENT: "Unpaid leave",
}


class TransactionSourceType(enum.StrEnum):
    """Origin of a ledger row."""

    TIME_ENTRY = "TIME_ENTRY"
    ABSENCE = "ABSENCE"
    CORRECTION = "CORRECTION"
    SYSTEM = "SYSTEM"


class HolidayJurisdiction(enum.StrEnum):
    """Where a public holiday applies."""

    FEDERAL = "FEDERAL"
    REGIONAL = "REGIONAL"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    TIME_ENTRY = "TIME_ENTRY"
    ABSENCE = "ABSENCE"
    CORRECTION = "CORRECTION"
    HOLIDAY = "HOLIDAY"
    HOLIDAY_YEAR = "HOLIDAY_YEAR"
    ROLLOVER = "ROLLOVER"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    LOAD = "LOAD"
    RUN = "RUN"
