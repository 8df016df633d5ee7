"""Roster service — read-only access to employees and departments.

The request workflow only consumes the roster; creation and edits happen in
the upstream HR system.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.common.constants import EmployeeStatus, UserRole
from leaveflow.common.exceptions import NotFoundException
from leaveflow.core_hr.models import Department, Employee
from leaveflow.core_hr.schemas import EmployeeSnapshot


# ═════════════════════════════════════════════════════════════════════
# RosterService
# ═════════════════════════════════════════════════════════════════════


class RosterService:
    """Async lookups over the employee roster."""

    @staticmethod
    async def find_employee(
        db: AsyncSession,
        employee_id: str,
    ) -> Optional[Employee]:
        """Return the employee or ``None``."""
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        return result.scalars().first()

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: str,
    ) -> Employee:
        """Return the employee or raise ``NotFoundException``."""
        employee = await RosterService.find_employee(db, employee_id)
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def get_snapshot(
        db: AsyncSession,
        employee_id: Optional[str],
    ) -> Optional[EmployeeSnapshot]:
        if not employee_id:
            return None
        employee = await RosterService.find_employee(db, employee_id)
        return EmployeeSnapshot.model_validate(employee) if employee else None

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        *,
        department: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[EmployeeStatus] = EmployeeStatus.active,
    ) -> list[Employee]:
        """List roster entries, active only unless *status* is ``None``."""
        query = select(Employee).order_by(Employee.department, Employee.id)
        if department is not None:
            query = query.where(Employee.department == department)
        if role is not None:
            query = query.where(Employee.role == role)
        if status is not None:
            query = query.where(Employee.status == status)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def lock_employees(
        db: AsyncSession,
        employee_ids: Iterable[str],
    ) -> dict[str, Employee]:
        """Lock roster rows ``FOR UPDATE`` in id order.

        Serialises concurrent submissions touching the same employees so the
        overlap re-check and the insert happen atomically.
        """
        ids = sorted({eid for eid in employee_ids if eid})
        if not ids:
            return {}
        result = await db.execute(
            select(Employee)
            .where(Employee.id.in_(ids))
            .order_by(Employee.id)
            .with_for_update()
        )
        return {emp.id: emp for emp in result.scalars().all()}

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[Department]:
        result = await db.execute(select(Department).order_by(Department.name))
        return list(result.scalars().all())
