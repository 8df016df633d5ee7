"""Core HR module — read-only roster: Employee and Department models and lookups."""

from leaveflow.core_hr.models import Department, Employee

__all__ = ["Employee", "Department"]
