from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from flask_cors import CORS
from flask_jwt_extended import JWTManager, unset_jwt_cookies
from flask_jwt_extended.exceptions import CSRFError
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import logging
import os

from .config.sheets import DEFAULT_INVENTORY_SHEET_ID, DEFAULT_TIME_TRACKING_SHEET_ID
from .errors import AppError

load_dotenv()

jwt = JWTManager()

MSG_NOT_LOGGED_IN = 'Nicht angemeldet'
MSG_CSRF = 'CSRF-Token fehlt oder ist ungültig'


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger('lagerbuch').setLevel(level)


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY') or os.getenv('SESSION_SECRET') or 'dev-secret'
    app.config['SESSION_IDLE_TIMEOUT'] = int(os.getenv('SESSION_IDLE_TIMEOUT', '120'))
    app.config['JWT_TOKEN_LOCATION'] = ['cookies']
    app.config['JWT_ACCESS_COOKIE_NAME'] = 'lagerbuch_session'
    app.config['JWT_COOKIE_SAMESITE'] = 'Lax'
    app.config['JWT_COOKIE_SECURE'] = _env_bool('JWT_COOKIE_SECURE', False)
    app.config['JWT_COOKIE_CSRF_PROTECT'] = _env_bool('JWT_COOKIE_CSRF_PROTECT', True)
    app.config['GOOGLE_SERVICE_ACCOUNT_EMAIL'] = os.getenv('GOOGLE_SERVICE_ACCOUNT_EMAIL')
    app.config['GOOGLE_PRIVATE_KEY'] = os.getenv('GOOGLE_PRIVATE_KEY')
    app.config['TIME_TRACKING_SHEET_ID'] = os.getenv('TIME_TRACKING_SHEET_ID', DEFAULT_TIME_TRACKING_SHEET_ID)
    app.config['INVENTORY_SHEET_ID'] = os.getenv('INVENTORY_SHEET_ID', DEFAULT_INVENTORY_SHEET_ID)
    app.config['SHEET_TIMEZONE'] = os.getenv('SHEET_TIMEZONE', 'Europe/Berlin')
    app.config['BOOKING_DEDUP_WINDOW'] = float(os.getenv('BOOKING_DEDUP_WINDOW', '5'))
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    app.config['CORS_ORIGIN'] = os.getenv('CORS_ORIGIN', 'http://localhost:3000')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # idle timeout: the cookie token is re-issued on every authenticated request
    if 'JWT_ACCESS_TOKEN_EXPIRES' not in (config or {}):
        app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(seconds=app.config['SESSION_IDLE_TIMEOUT'])

    _configure_logging(app.config['LOG_LEVEL'])

    origins = [o.strip() for o in str(app.config['CORS_ORIGIN']).split(',') if o.strip()]
    CORS(app, origins=origins, supports_credentials=True)

    jwt.init_app(app)
    _register_jwt_callbacks()

    # 403 that keeps the session; jwt.init_app maps CSRFError to the 401 loader
    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning('CSRF check failed: %s', e)
        return {'success': False, 'message': MSG_CSRF}, 403

    # Shared singletons (tests inject fakes through config)
    from .services.policy import AccessBundle, EXTENSION_KEY as ACCESS_KEY
    from .services.dedup import DedupWindow, EXTENSION_KEY as DEDUP_KEY
    from .sheets import EXTENSION_KEY as SHEETS_KEY
    from .sheets.gateway import SpreadsheetGateway
    app.extensions[ACCESS_KEY] = app.config.get('ACCESS_BUNDLE') or AccessBundle.default()
    app.extensions[SHEETS_KEY] = app.config.get('SHEETS_GATEWAY') or SpreadsheetGateway.from_config(app.config)
    window = app.config['BOOKING_DEDUP_WINDOW']
    app.extensions[DEDUP_KEY] = {
        'movements': DedupWindow(window),
        'time': DedupWindow(window),
    }

    from .session import refresh_session
    app.after_request(refresh_session)

    from .routes.auth import auth_bp
    from .routes.inventory import inv_bp
    from .routes.time import time_bp
    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(inv_bp, url_prefix='/api/inventory')
    app.register_blueprint(time_bp, url_prefix='/api/time')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if e.status >= 500:
            app.logger.error('%s: %s', type(e).__name__, e.message)
        return e.to_payload(), e.status

    # Unified error handler producing the {success, message} shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return {'success': False, 'message': e.description}, e.code
        app.logger.exception('Unhandled exception')
        return {'success': False, 'message': 'Interner Server-Fehler'}, 500

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    return app


def _not_logged_in():
    resp = jsonify({'success': False, 'message': MSG_NOT_LOGGED_IN})
    resp.status_code = 401
    unset_jwt_cookies(resp)
    return resp


def _register_jwt_callbacks():
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return _not_logged_in()

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _not_logged_in()

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return _not_logged_in()
