"""Cookie session on top of flask-jwt-extended.

The session is a short lived access token in an HttpOnly cookie. Its claims
carry the employee name and the permission snapshot computed at login (or at
the last ``/auth/session`` check). Every request that verified the token gets
a fresh cookie, so the configured lifetime acts as an idle timeout.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
from flask import g
from flask_jwt_extended import (
    create_access_token, get_jwt, get_jwt_identity, set_access_cookies, unset_jwt_cookies,
)


def start_session(response, employee_id: str, name: str, permissions: Optional[Dict[str, Any]]):
    # identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(employee_id), additional_claims={
        'name': name,
        'permissions': permissions or {},
    })
    set_access_cookies(response, token)
    g.session_issued = True
    return response


def end_session(response):
    unset_jwt_cookies(response)
    g.session_issued = True
    return response


def session_user() -> Dict[str, Any]:
    claims = get_jwt()
    return {
        'id': get_jwt_identity(),
        'name': claims.get('name', ''),
        'permissions': claims.get('permissions') or {},
    }


def refresh_session(response):
    """after_request hook: slide the idle window of a verified session."""
    if g.get('session_issued') or response.status_code == 401:
        return response
    try:
        claims = get_jwt()
        identity = get_jwt_identity()
    except RuntimeError:
        # no token was verified during this request
        return response
    if not identity:
        return response
    start_session(response, identity, claims.get('name', ''), claims.get('permissions'))
    return response
