"""
Project Routes

FLOW OVERVIEW
- /api/projects/create [POST] → 201 with project, base files, type label and tech stack.
- /api/projects/join/<id> [POST]
- /api/projects/<id> [GET, DELETE]
- /api/projects/<id>/member-count, /members/count, /files/count [GET]
- /api/projects/user/<user_id> [GET]
- /api/projects/<id>/settings [PUT]
- /api/projects/<id>/logs [GET], /api/projects/<id>/reorganize [POST]
"""

from flask import Blueprint, request, session, current_app

from ..models import db
from ..utils import project_service
from ..utils.api_utils import request_validator, response_formatter
from ..utils.error_handlers import AutoAIError

projects_bp = Blueprint('projects', __name__)


def acting_user_id(data=None):
    """userId from the body, else the session user"""
    user_id = (data or {}).get('userId') or (data or {}).get('user_id') or session.get('user_id')
    try:
        return int(user_id) if user_id is not None else None
    except (TypeError, ValueError):
        return None


@projects_bp.route('/create', methods=['POST'])
def create_project():
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'name')
    if not ok:
        return response_formatter.failure(error)

    user_id = acting_user_id(data) or acting_user_id({'userId': data.get('createdBy')})
    if user_id is None:
        return response_formatter.failure({'success': False, 'error': 'userId is required'})

    try:
        result = project_service.create_project(
            data['name'], data.get('description'), data.get('type'), user_id
        )
    except AutoAIError:
        raise
    except Exception as e:
        current_app.logger.error(f"Project creation failed: {str(e)}", exc_info=True)
        return response_formatter.server_error('Project creation failed')

    return response_formatter.success(result, 'Project created', 201)


@projects_bp.route('/join/<project_id>', methods=['POST'])
def join_project(project_id):
    data = request.get_json(silent=True) or {}
    user_id = acting_user_id(data)
    if user_id is None:
        return response_formatter.failure({'success': False, 'error': 'userId is required'})
    project = project_service.join_project(project_id, user_id)
    return response_formatter.success(project, 'Joined project')


@projects_bp.route('/user/<int:user_id>', methods=['GET'])
def user_projects(user_id):
    return response_formatter.success(project_service.user_projects(user_id))


@projects_bp.route('/<project_id>', methods=['GET'])
def get_project(project_id):
    return response_formatter.success(project_service.get_project(project_id))


@projects_bp.route('/<project_id>/member-count', methods=['GET'])
@projects_bp.route('/<project_id>/members/count', methods=['GET'])
def member_count(project_id):
    return response_formatter.success({'count': project_service.member_count(project_id)})


@projects_bp.route('/<project_id>/files/count', methods=['GET'])
def file_count(project_id):
    return response_formatter.success({'count': project_service.file_count(project_id)})


@projects_bp.route('/<project_id>/settings', methods=['PUT'])
def update_settings(project_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    settings = data.get('settings', data)
    if isinstance(settings, dict):
        settings = {k: v for k, v in settings.items() if k not in ('userId', 'user_id')}
    updated = project_service.update_settings(project_id, settings, acting_user_id(data))
    return response_formatter.success(updated, 'Settings updated')


@projects_bp.route('/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    try:
        result = project_service.delete_project(project_id)
    except AutoAIError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Project deletion failed: {str(e)}", exc_info=True)
        return response_formatter.server_error('Project deletion failed')
    return response_formatter.success(result, 'Project deleted')


@projects_bp.route('/<project_id>/logs', methods=['GET'])
def project_logs(project_id):
    limit = request.args.get('limit', 50, type=int)
    return response_formatter.success(project_service.get_logs(project_id, limit))


@projects_bp.route('/<project_id>/reorganize', methods=['POST'])
def reorganize(project_id):
    data = request.get_json(silent=True) or {}
    result = project_service.reorganize(project_id, acting_user_id(data))
    return response_formatter.success(result, 'Project structure reorganized')
