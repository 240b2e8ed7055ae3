from fastapi import APIRouter

from timeaccount.api.absences import absences_router, employee_absences_router
from timeaccount.api.balances import employee_balance_router, rollover_router
from timeaccount.api.corrections import corrections_router, employee_corrections_router
from timeaccount.api.employees import employees_router
from timeaccount.api.holidays import holidays_router
from timeaccount.api.time_entries import employee_time_entries_router, time_entries_router

api_router = APIRouter()
api_router.include_router(employees_router)
api_router.include_router(employee_balance_router)
api_router.include_router(rollover_router)
api_router.include_router(time_entries_router)
api_router.include_router(employee_time_entries_router)
api_router.include_router(absences_router)
api_router.include_router(employee_absences_router)
api_router.include_router(corrections_router)
api_router.include_router(employee_corrections_router)
api_router.include_router(holidays_router)
