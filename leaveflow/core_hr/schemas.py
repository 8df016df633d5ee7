"""Core HR Pydantic v2 schemas — read-only roster views."""


from typing import Optional

from pydantic import BaseModel, ConfigDict

from leaveflow.common.constants import EmployeeStatus, UserRole


class EmployeeSnapshot(BaseModel):
    """Immutable roster entry handed to the rule engines."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    name: str
    role: UserRole
    department: Optional[str] = None
    designation: Optional[str] = None
    manager_id: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.active

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.active

