from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple
from flask import current_app
from flask_jwt_extended import get_jwt_identity
from lagerbuch.constants.employees import EMPLOYEES
from lagerbuch.constants.permissions import PERMISSIONS, RES_EMPLOYEES, freeze_table
from lagerbuch.errors import PermissionDeniedError
from lagerbuch.services.credentials import EmployeeDirectory

EXTENSION_KEY = 'lagerbuch.access'


class PermissionEvaluator:
    """Pure function over the static directory and permission table."""

    def __init__(self, directory: EmployeeDirectory, table: Mapping[str, Mapping[str, list]]):
        self.directory = directory
        self.table = table
        self._allowed: Dict[Tuple[str, str], FrozenSet[str]] = freeze_table(table)

    def has_permission(self, employee_id: Optional[str], resource: str, action: str = 'view') -> bool:
        employee = self.directory.get(employee_id)
        if employee is None:
            return False
        allowed = self._allowed.get((resource, action))
        if not allowed:
            return False
        return not employee.roles.isdisjoint(allowed)

    def snapshot(self, employee_id: Optional[str]) -> Optional[Dict[str, Dict[str, bool]]]:
        """Every configured resource/action evaluated for one employee."""
        if self.directory.get(employee_id) is None:
            return None
        return {
            resource: {action: self.has_permission(employee_id, resource, action) for action in actions}
            for resource, actions in self.table.items()
        }


@dataclass
class AccessBundle:
    directory: EmployeeDirectory
    table: Mapping[str, Mapping[str, list]] = field(default_factory=lambda: PERMISSIONS)

    def __post_init__(self):
        self.evaluator = PermissionEvaluator(self.directory, self.table)

    @classmethod
    def default(cls) -> 'AccessBundle':
        return cls(EmployeeDirectory.from_records(EMPLOYEES), PERMISSIONS)


def get_access() -> AccessBundle:
    return current_app.extensions[EXTENSION_KEY]


def current_employee_id() -> Optional[str]:
    return get_jwt_identity()


def has_permission(resource: str, action: str = 'view') -> bool:
    """Re-derive a permission for the session's employee from the tables."""
    return get_access().evaluator.has_permission(current_employee_id(), resource, action)


def resolve_acting_employee(requested_id: Optional[str]) -> str:
    """Return the employee a request acts for.

    Defaults to the session's employee; another id is only accepted for
    employees holding ``employees.manage``.
    """
    session_id = current_employee_id()
    if not requested_id or requested_id == session_id:
        return session_id
    if has_permission(RES_EMPLOYEES, 'manage'):
        return requested_id
    raise PermissionDeniedError()
