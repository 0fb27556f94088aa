import logging
from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from lagerbuch.errors import AuthenticationError
from lagerbuch.services.policy import get_access
from lagerbuch.session import end_session, session_user, start_session

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
@auth_bp.post('/auth/login')
def login():
    data = request.get_json(silent=True) or {}
    employee_id = str(data.get('employeeId') or '').strip()
    password = data.get('password')
    access = get_access()
    employee = access.directory.authenticate(employee_id, None if password is None else str(password))
    permissions = access.evaluator.snapshot(employee.id)
    if permissions is None:
        raise AuthenticationError('Fehler beim Laden der Berechtigungen')
    logger.info('Login successful for %s', employee.id)
    resp = jsonify({
        'success': True,
        'employeeId': employee.id,
        'name': employee.name,
        'permissions': permissions,
    })
    return start_session(resp, employee.id, employee.name, permissions)


def _verified_session():
    """Current session user or None; expired / tampered tokens count as no session."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError):
        return None
    user = session_user()
    return user if user['id'] else None


@auth_bp.get('/auth/session')
def session_check():
    user = _verified_session()
    access = get_access()
    permissions = access.evaluator.snapshot(user['id']) if user else None
    if permissions is None:
        resp = jsonify({'authenticated': False, 'message': 'Session ungültig'})
        resp.status_code = 401
        return end_session(resp)
    employee = access.directory.get(user['id'])
    body = {'id': employee.id, 'name': employee.name, 'permissions': permissions}
    resp = jsonify({'authenticated': True, 'user': body})
    # re-issue with the re-derived permission snapshot
    return start_session(resp, employee.id, employee.name, permissions)


@auth_bp.get('/check-auth')
def check_auth():
    user = _verified_session()
    if not user:
        resp = jsonify({'isLoggedIn': False})
        if current_app.config['JWT_ACCESS_COOKIE_NAME'] in request.cookies:
            # expired or tampered cookie
            end_session(resp)
        return resp
    return {'isLoggedIn': True, 'userId': user['id'], 'userName': user['name']}


@auth_bp.post('/logout')
@auth_bp.post('/auth/logout')
def logout():
    return end_session(jsonify({'success': True}))
