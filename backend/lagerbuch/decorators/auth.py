from functools import wraps
from flask_jwt_extended import verify_jwt_in_request
from lagerbuch.errors import PermissionDeniedError
from lagerbuch.services.policy import has_permission


def require_permission(resource: str, action: str = 'view'):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permission(resource, action):
                raise PermissionDeniedError()
            return fn(*args, **kwargs)
        return wrapper
    return outer
