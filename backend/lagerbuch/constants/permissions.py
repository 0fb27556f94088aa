"""Central role and permission tables.

Resources map actions to the roles allowed to perform them. Extend cautiously;
the session snapshot sent to the browser is derived from this table.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List, Tuple

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'
ROLE_INVENTORY_MANAGER = 'inventory_manager'
ROLE_INVENTORY_VIEWER = 'inventory-viewer'

RES_TIME = 'timeTracking'
RES_INVENTORY = 'inventory'
RES_EMPLOYEES = 'employees'

PERMISSIONS: Dict[str, Dict[str, List[str]]] = {
    RES_TIME: {
        'view': [ROLE_ADMIN, ROLE_USER],
        'edit': [ROLE_ADMIN, ROLE_USER],
    },
    RES_INVENTORY: {
        'view': [ROLE_ADMIN, ROLE_INVENTORY_VIEWER, ROLE_INVENTORY_MANAGER],
        'edit': [ROLE_ADMIN, ROLE_INVENTORY_MANAGER],
        'delete': [ROLE_ADMIN],
    },
    # acting on behalf of another employee (history of others, bookings for others)
    RES_EMPLOYEES: {
        'manage': [ROLE_ADMIN],
    },
}


def freeze_table(table: Dict[str, Dict[str, List[str]]]) -> Dict[Tuple[str, str], FrozenSet[str]]:
    frozen: Dict[Tuple[str, str], FrozenSet[str]] = {}
    for resource, actions in table.items():
        for action, roles in actions.items():
            frozen[(resource, action)] = frozenset(roles)
    return frozen
