"""
API Utilities Module

FLOW OVERVIEW
- APIRequestValidator
  • validate_json_request → parse/validate JSON and return (ok, data, error).
  • require_fields → name the missing fields and return (ok, error).
  • int_field → coerce an id-like field to int or return an error.

- APIResponseFormatter
  • success → {'success': True, 'data': ..., 'message'?: ...} with a status code.
  • failure / server_error → the {'success': False, 'error': ...} envelope.

Used by every blueprint to avoid code duplication.
"""

import logging
from typing import Dict, Any, Tuple, Optional
from flask import request, jsonify


class APIRequestValidator:
    """Handles common request validation logic."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_json_request(self) -> Tuple[bool, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Validate and parse JSON request.

        Returns:
            Tuple of (is_valid, data, error_response)
        """
        data = request.get_json(force=True, silent=True)

        if data is None:
            self.logger.warning(f"Invalid or missing JSON body on {request.path}")
            return False, None, {
                'success': False,
                'error_code': 'INVALID_JSON',
                'error': 'Invalid request format. JSON payload required.'
            }

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid data type on {request.path}: {type(data)}")
            return False, None, {
                'success': False,
                'error_code': 'INVALID_DATA_TYPE',
                'error': 'Request data must be a JSON object.'
            }

        return True, data, None

    def require_fields(self, data: Dict[str, Any], *names: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Check that every named field is present and non-empty.

        Returns:
            Tuple of (is_valid, error_response)
        """
        missing = [name for name in names if data.get(name) in (None, '')]
        if missing:
            return False, {
                'success': False,
                'error_code': 'MISSING_FIELDS',
                'error': f"Missing required fields: {', '.join(missing)}"
            }
        return True, None

    def int_field(self, data: Dict[str, Any], name: str) -> Tuple[bool, Optional[int], Optional[Dict[str, Any]]]:
        """Coerce an id-like field ('3' or 3) to int"""
        try:
            return True, int(data.get(name)), None
        except (TypeError, ValueError):
            return False, None, {
                'success': False,
                'error_code': 'INVALID_FIELD',
                'error': f"{name} must be an integer"
            }


class APIResponseFormatter:
    """Handles response formatting for different endpoint types."""

    @staticmethod
    def success(data: Any = None, message: Optional[str] = None, status_code: int = 200):
        body = {'success': True, 'data': data}
        if message:
            body['message'] = message
        return jsonify(body), status_code

    @staticmethod
    def failure(error: Dict[str, Any], status_code: int = 400):
        return jsonify(error), status_code

    @staticmethod
    def server_error(message: str = 'Internal server error'):
        return jsonify({
            'success': False,
            'error_code': 'INTERNAL_SERVER_ERROR',
            'error': message
        }), 500


# Global instances
request_validator = APIRequestValidator()
response_formatter = APIResponseFormatter()
