"""
Error Handlers

FLOW OVERVIEW
- AutoAIError and subclasses
  • Raised by the service layer; each carries an HTTP status code.
- error_response(message, status_code)
  • The JSON failure envelope shared by routes and handlers.
- register_error_handlers(app)
  • Maps AutoAIError, 404, 405 and 500 to the JSON envelope; 500 rolls back the session.
"""

from flask import jsonify, current_app


class AutoAIError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AutoAIError):
    status_code = 400


class AuthenticationError(AutoAIError):
    status_code = 401


class PermissionDeniedError(AutoAIError):
    status_code = 403


class NotFoundError(AutoAIError):
    status_code = 404


class ConflictError(AutoAIError):
    status_code = 409


class LLMServiceError(AutoAIError):
    status_code = 502


def error_response(message, status_code):
    """Build the JSON failure envelope"""
    return jsonify({'success': False, 'error': message}), status_code


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(AutoAIError)
    def handle_autoai_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"Service error: {error.message}", exc_info=True)
        return error_response(error.message, error.status_code)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Resource not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', 405)

    @app.errorhandler(500)
    def internal_error(error):
        from ..models import db
        db.session.rollback()
        return error_response('Internal server error', 500)
