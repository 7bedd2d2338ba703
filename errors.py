# errors.py
import logging

from flask import jsonify
from flask_babel import lazy_gettext as _l
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from models import db

logger = logging.getLogger(__name__)


class AppError(Exception):
    """带稳定 kind 与 HTTP 状态码的业务错误"""
    kind = 'internal'
    status_code = 500
    default_message = _l('Server error')

    def __init__(self, message=None):
        if message is None:
            message = self.default_message
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'error': self.kind, 'msg': str(self.message)}


class InvalidInput(AppError):
    kind = 'invalid_input'
    status_code = 400
    default_message = _l('Invalid input')


class InvalidCredentials(AppError):
    kind = 'invalid_credentials'
    status_code = 401
    default_message = _l('Invalid email or password')


class Unauthorized(AppError):
    kind = 'unauthorized'
    status_code = 401
    default_message = _l('Missing, invalid or expired token')


class Forbidden(AppError):
    kind = 'forbidden'
    status_code = 403
    default_message = _l('Access denied')


class NotFound(AppError):
    kind = 'not_found'
    status_code = 404
    default_message = _l('Not found')


class Conflict(AppError):
    kind = 'conflict'
    status_code = 409
    default_message = _l('Already exists')


class Internal(AppError):
    pass


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(e):
        # 存储层错误不外泄细节
        db.session.rollback()
        logger.exception('store failure')
        return handle_app_error(Internal())

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({'error': 'too_large', 'msg': str(_l('Request body too large'))}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code == 400:
            return handle_app_error(InvalidInput(_l('Malformed request body')))
        if e.code == 404:
            return handle_app_error(NotFound(_l('API endpoint not found')))
        return jsonify({'error': (e.name or 'error').lower().replace(' ', '_'),
                        'msg': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception('unhandled error')
        return handle_app_error(Internal())
