from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

import bcrypt

from lagerbuch.errors import AuthenticationError

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    password_hash: str
    roles: FrozenSet[str]


def hash_password(raw: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(raw.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('ascii')


def verify_password(raw: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(raw.encode('utf-8'), password_hash.encode('ascii'))
    except ValueError:
        # malformed hash in the directory
        logger.warning('Invalid password hash format')
        return False


class EmployeeDirectory:
    """Immutable id -> Employee mapping loaded once at startup."""

    def __init__(self, employees: Iterable[Employee]):
        self._by_id: Dict[str, Employee] = {e.id: e for e in employees}

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]]) -> 'EmployeeDirectory':
        return cls(
            Employee(
                id=str(r['id']),
                name=str(r['name']),
                password_hash=str(r['password_hash']),
                roles=frozenset(r.get('roles') or ()),
            )
            for r in records
        )

    def get(self, employee_id: Optional[str]) -> Optional[Employee]:
        if not employee_id:
            return None
        return self._by_id.get(employee_id)

    def ids(self):
        return sorted(self._by_id)

    def __contains__(self, employee_id) -> bool:
        return employee_id in self._by_id

    def authenticate(self, employee_id: Optional[str], password: Optional[str]) -> Employee:
        employee = self.get(employee_id)
        if employee is None:
            raise AuthenticationError('Mitarbeiter nicht gefunden')
        if not password or not verify_password(password, employee.password_hash):
            raise AuthenticationError('Falsches Passwort')
        return employee
