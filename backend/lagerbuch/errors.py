"""Error taxonomy shared by services and route handlers.

Every error carries the HTTP status it maps to and a short client-facing
message. The app level error handler renders them as
``{"success": false, "message": ...}``.
"""
from __future__ import annotations
from typing import Iterable, List, Optional


class AppError(Exception):
    status = 500
    default_message = 'Interner Server-Fehler'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {'success': False, 'message': self.message}


class ValidationError(AppError):
    """Missing or invalid input; carries every collected problem."""
    status = 400
    default_message = 'Ungültige Eingabe'

    def __init__(self, errors: Iterable[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__('; '.join(self.errors) or None)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload['errors'] = self.errors
        return payload


class AuthenticationError(AppError):
    status = 401
    default_message = 'Nicht angemeldet'


class PermissionDeniedError(AppError):
    status = 403
    default_message = 'Keine Berechtigung für diese Aktion'


class NotFoundError(AppError):
    """An expected worksheet is missing from the workbook."""
    status = 500

    def __init__(self, sheet_title: str):
        self.sheet_title = sheet_title
        super().__init__(f'{sheet_title} Sheet nicht gefunden')


class StorageError(AppError):
    status = 500
    default_message = 'Fehler beim Zugriff auf das Google Sheet'


class PartialBookingError(StorageError):
    """Outbound row of a transfer was written, the inbound row was not."""
    default_message = 'Umbuchung nur teilweise gespeichert - bitte Support kontaktieren'

    def __init__(self, written_rows: int = 1, message: Optional[str] = None):
        self.written_rows = written_rows
        super().__init__(message)


__all__ = [
    'AppError',
    'ValidationError',
    'AuthenticationError',
    'PermissionDeniedError',
    'NotFoundError',
    'StorageError',
    'PartialBookingError',
]
