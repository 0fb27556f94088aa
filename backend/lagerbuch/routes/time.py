from __future__ import annotations
from flask import Blueprint, request
from lagerbuch.constants.permissions import RES_TIME
from lagerbuch.decorators.auth import require_permission
from lagerbuch.services.dedup import get_dedup
from lagerbuch.services.policy import resolve_acting_employee
from lagerbuch.services.time_tracking import TimeTrackingService
from lagerbuch.sheets import get_time_book
from lagerbuch.utils.validation import pick

time_bp = Blueprint('time', __name__)


def _service() -> TimeTrackingService:
    return TimeTrackingService(get_time_book(), get_dedup('time'))


@time_bp.post('/entry')
@require_permission(RES_TIME, 'edit')
def record_entry():
    data = request.get_json(silent=True) or {}
    employee_id = resolve_acting_employee(pick(data, 'employeeId', 'mitarbeiter_id'))
    message = _service().record_entry(employee_id, data)
    return {'success': True, 'message': message}


@time_bp.get('/locations')
@require_permission(RES_TIME, 'view')
def locations():
    return {'success': True, 'locations': _service().locations()}


@time_bp.get('/history/<employee_id>')
@require_permission(RES_TIME, 'view')
def history(employee_id: str):
    employee_id = resolve_acting_employee(employee_id)
    return {'success': True, 'times': _service().history(employee_id)}


@time_bp.delete('/entries')
@require_permission(RES_TIME, 'edit')
def delete_entries():
    data = request.get_json(silent=True) or {}
    employee_id = resolve_acting_employee(pick(data, 'employeeId', 'mitarbeiter_id'))
    deleted = _service().delete_entries(employee_id, data.get('timestamps'))
    return {'success': True, 'deleted': deleted, 'message': f'{deleted} Einträge gelöscht'}
