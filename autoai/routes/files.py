"""
Project File Routes

FLOW OVERVIEW
- /api/projects/<id>/items [POST, DELETE]
  • Generic save (folder or file) / delete by itemPath.
- /api/projects/<id>/folders [POST], /api/projects/<id>/files [POST] → 201.
- /api/projects/<id>/files [GET] ?parent_path= → direct children.
- /api/projects/<id>/file-content [GET] ?filePath=, /file-tree [GET]
- /api/projects/<id>/update-file [POST]
- /api/projects/<id>/preview [GET] ?filePath= → raw content with its MIME type.
- /api/projects/<id>/cleanup [POST] → purge soft-deleted rows.

Every mutation commits here; the file store itself never commits.
"""

from flask import Blueprint, Response, request, url_for, current_app

from ..models import db
from ..utils.api_utils import request_validator, response_formatter
from ..utils.error_handlers import AutoAIError, ValidationError
from ..utils.file_store import ProjectFileStore
from ..utils.project_service import get_project_or_404
from .projects import acting_user_id

files_bp = Blueprint('files', __name__)


def _store(project_id):
    return ProjectFileStore.for_project(get_project_or_404(project_id))


def _created_by(data):
    user_id = acting_user_id(data)
    return str(data.get('createdBy') or user_id or 'system')


def _commit_or_rollback(operation, description):
    """Run a store mutation and commit, rolling back on any failure"""
    try:
        result = operation()
        db.session.commit()
        return result
    except AutoAIError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"{description} failed: {str(e)}", exc_info=True)
        raise


@files_bp.route('/<project_id>/items', methods=['POST'])
def save_item(project_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)

    store = _store(project_id)
    item = dict(data, created_by=_created_by(data))
    result = _commit_or_rollback(lambda: store.save_item(item), 'Save item')
    return response_formatter.success(result, 'Item saved')


@files_bp.route('/<project_id>/folders', methods=['POST'])
def create_folder(project_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    name = data.get('folderName') or data.get('name')
    if not name:
        return response_formatter.failure({'success': False, 'error': 'Missing required fields: folderName'})

    store = _store(project_id)
    parent = data.get('parentPath') or data.get('parent_path')
    result = _commit_or_rollback(
        lambda: store.create_folder(name, parent, _created_by(data)), 'Create folder'
    )
    return response_formatter.success(result, 'Folder created', 201)


@files_bp.route('/<project_id>/files', methods=['POST'])
def create_file(project_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    name = data.get('fileName') or data.get('name')
    if not name:
        return response_formatter.failure({'success': False, 'error': 'Missing required fields: fileName'})

    store = _store(project_id)
    parent = data.get('parentPath') or data.get('parent_path')
    result = _commit_or_rollback(
        lambda: store.create_file(name, parent, data.get('content') or '', _created_by(data)),
        'Create file'
    )
    return response_formatter.success(result, 'File created', 201)


@files_bp.route('/<project_id>/items', methods=['DELETE'])
def delete_item(project_id):
    data = request.get_json(silent=True) or {}
    path = data.get('itemPath') or request.args.get('itemPath')
    if not path:
        return response_formatter.failure({'success': False, 'error': 'Missing required fields: itemPath'})

    store = _store(project_id)
    result = _commit_or_rollback(lambda: store.delete_item(path, _created_by(data)), 'Delete item')
    return response_formatter.success(result, 'Item deleted')


@files_bp.route('/<project_id>/files', methods=['GET'])
def list_items(project_id):
    parent = request.args.get('parent_path') or request.args.get('parentPath')
    return response_formatter.success(_store(project_id).list_items(parent))


@files_bp.route('/<project_id>/file-content', methods=['GET'])
def file_content(project_id):
    path = request.args.get('filePath')
    if not path:
        raise ValidationError("filePath is required")
    return response_formatter.success(_store(project_id).get_file(path))


@files_bp.route('/<project_id>/file-tree', methods=['GET'])
def file_tree(project_id):
    return response_formatter.success(_store(project_id).file_tree())


@files_bp.route('/<project_id>/update-file', methods=['POST'])
def update_file(project_id):
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'filePath')
    if not ok:
        return response_formatter.failure(error)

    store = _store(project_id)
    result = _commit_or_rollback(
        lambda: store.update_file_content(data['filePath'], data.get('content') or '', _created_by(data)),
        'Update file'
    )
    return response_formatter.success(result, 'File updated')


@files_bp.route('/<project_id>/preview', methods=['GET'])
def preview(project_id):
    path = request.args.get('filePath')
    if not path:
        raise ValidationError("filePath is required")
    preview_url = url_for('files.preview', project_id=project_id)
    content, mimetype = _store(project_id).preview(path, preview_url)
    return Response(content, mimetype=mimetype)


@files_bp.route('/<project_id>/cleanup', methods=['POST'])
def cleanup(project_id):
    store = _store(project_id)
    deleted = _commit_or_rollback(store.cleanup_deleted_files, 'Cleanup')
    return response_formatter.success({'deleted': deleted}, f'Removed {deleted} deleted rows')
