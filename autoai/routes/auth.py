"""
Authentication Routes

FLOW OVERVIEW
- /api/auth/register [POST]
  • Validate + create user (bcrypt hash) → 201.
- /api/auth/login [POST]
  • Authenticate by username or email → set session → return user.
- /api/auth/logout [POST]
  • Clear session (login required).
- /api/auth/me [GET]
  • Session user.
- /api/auth/user/<id> [GET, PUT], /api/auth/user/<id>/password [PUT]
  • Profile read / update and password change.
- /api/auth/users [GET], /api/auth/dashboard/<id> [GET]
"""

from functools import wraps

from flask import Blueprint, jsonify, session, current_app

from ..models import db
from ..utils.api_utils import request_validator, response_formatter
from ..utils.auth_utils import (
    create_user, authenticate_user, get_user, update_user, change_password,
    list_users, get_dashboard,
)
from ..utils.error_handlers import AutoAIError

auth_bp = Blueprint('auth', __name__)


def login_required(f):
    """Decorator to require user login"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'success': False, 'error': 'Unauthorized. Please log in.'}), 401
        return f(*args, **kwargs)
    return decorated_function


@auth_bp.route('/register', methods=['POST'])
def register():
    """User registration endpoint"""
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'username', 'email', 'password')
    if not ok:
        return response_formatter.failure(error)

    try:
        user = create_user(data['username'], data['email'], data['password'])
    except AutoAIError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Registration failed: {str(e)}", exc_info=True)
        return response_formatter.server_error('Registration failed')

    return response_formatter.success(user.to_dict(), 'Registration successful', 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    """User login endpoint"""
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)

    identifier = data.get('username') or data.get('email') or ''
    user = authenticate_user(identifier, data.get('password', ''))

    session.clear()
    session['user_id'] = user.id
    session['username'] = user.username
    session.permanent = True
    current_app.logger.info(f"User logged in: {user.username}")

    return response_formatter.success(user.to_dict(), 'Login successful')


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User logout endpoint"""
    session.clear()
    return response_formatter.success(None, 'Logged out')


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return response_formatter.success(get_user(session['user_id']).to_dict())


@auth_bp.route('/user/<int:user_id>', methods=['GET'])
def get_user_profile(user_id):
    return response_formatter.success(get_user(user_id).to_dict())


@auth_bp.route('/user/<int:user_id>', methods=['PUT'])
def update_user_profile(user_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)

    user = update_user(
        user_id,
        username=data.get('username'),
        email=data.get('email'),
        avatar=data.get('avatar'),
    )
    if session.get('user_id') == user.id:
        session['username'] = user.username
    return response_formatter.success(user.to_dict(), 'Profile updated')


@auth_bp.route('/user/<int:user_id>/password', methods=['PUT'])
def update_password(user_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'oldPassword', 'newPassword')
    if not ok:
        return response_formatter.failure(error)

    change_password(user_id, data['oldPassword'], data['newPassword'])
    return response_formatter.success(None, 'Password updated')


@auth_bp.route('/users', methods=['GET'])
def users():
    return response_formatter.success([u.to_dict() for u in list_users()])


@auth_bp.route('/dashboard/<int:user_id>', methods=['GET'])
def dashboard(user_id):
    return response_formatter.success(get_dashboard(user_id))
