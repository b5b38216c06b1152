"""
Project Service

FLOW OVERVIEW
- create_project(name, description, project_type, created_by_id)
  • Validate and de-duplicate the name (also by derived file-table name), add the owner,
    create the project file table and write the type's base files. One commit.
- join_project / get_project / user_projects / member & file counts
- update_settings(project_id, settings)
  • allowJoin boolean, maxMembers 1..50 and never below the active member count.
- delete_project(project_id)
  • Drops every file table, then members, logs, invitations, conversations and the row.
- reorganize(project_id)
  • Moves well-known root files into src/, router/, components/, public/, config/.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..models import (
    db, User, Project, ProjectMember, ProjectLog, ProjectInvitation,
    AIConversation, CodeModification,
)
from ..models.file_table import generate_safe_table_name, project_tables_overlap
from ..models.project import OWNER_PERMISSIONS, MEMBER_PERMISSIONS
from ..models.utils import generate_project_id, utcnow
from .error_handlers import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from .file_store import ProjectFileStore
from .project_types import generate_project_files, get_project_type_config, resolve_project_type
from .validators import validate_project_name, sanitize_input

logger = logging.getLogger(__name__)

MAX_MEMBERS_LIMIT = 50

# Root file name -> target folder
REORGANIZE_LAYOUT = {
    'main.js': 'src',
    'App.vue': 'src',
    'index.js': 'router',
    'index.html': 'public',
    'vite.config.js': 'config',
    'package.json': 'config',
}


def get_project_or_404(project_id) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def _new_project_id() -> str:
    while True:
        project_id = generate_project_id()
        if db.session.get(Project, project_id) is None:
            return project_id


def create_project(name, description, project_type, created_by_id) -> Dict[str, Any]:
    result = validate_project_name(name)
    if not result.is_valid:
        raise ValidationError(result.error_message)
    name = result.sanitized_value
    description = sanitize_input(description or '', max_length=5000)
    project_type = resolve_project_type(project_type)

    user = db.session.get(User, created_by_id)
    if user is None:
        raise NotFoundError("User not found")

    active_projects = Project.query.filter(Project.status == 'active').all()
    if any(p.name == name for p in active_projects):
        raise ConflictError("A project with this name already exists")

    table_name = generate_safe_table_name(name)
    if any(project_tables_overlap(generate_safe_table_name(p.name), table_name) for p in active_projects):
        raise ConflictError(f"Project name conflicts with an existing project's file table ({table_name})")

    project = Project(
        id=_new_project_id(),
        name=name,
        description=description,
        type=project_type,
        created_by=user.username,
        created_by_id=user.id,
        members=[],
        member_ids=[],
    )
    project.add_member_ref(user.id, user.username)
    db.session.add(project)
    db.session.add(ProjectMember(
        project_id=project.id,
        user_id=user.id,
        username=user.username,
        role='owner',
        permissions=dict(OWNER_PERMISSIONS),
        status='active',
    ))

    try:
        db.session.flush()
        store = ProjectFileStore.for_project(project)
        if store.table_exists(store.table_name):
            raise ConflictError(f"File table {store.table_name} already exists")
        store.ensure_project_table()

        files = generate_project_files(project_type, name)
        created_files = []
        for path, content in files.items():
            item = store.create_file(path, '/', content, created_by=str(user.id))
            created_files.append(item['file_path'])

        type_config = get_project_type_config(project_type)
        ProjectLog.record(project.id, user.id, 'project_created', {
            'projectName': name,
            'projectType': project_type,
            'tableName': store.table_name,
            'fileCount': len(created_files),
        })
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(json.dumps({
        'event': 'project_created',
        'project_id': project.id,
        'type': project_type,
        'table': store.table_name,
        'files': len(created_files),
    }))
    return {
        'project': project.to_dict(),
        'files': created_files,
        'typeName': type_config['name'],
        'techStack': type_config['tech_stack'],
    }


def active_member_count(project_id) -> int:
    return ProjectMember.query.filter_by(project_id=project_id, status='active').count()


def join_project(project_id, user_id) -> Dict[str, Any]:
    project = get_project_or_404(project_id)
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    membership = ProjectMember.query.filter_by(project_id=project.id, user_id=user.id).first()
    if membership is not None and membership.is_active():
        raise ConflictError("You are already a member of this project")

    if membership is not None:
        membership.status = 'active'
        membership.joined_at = utcnow()
    else:
        settings = project.get_settings()
        if not settings.get('allowJoin', True):
            raise PermissionDeniedError("This project does not allow joining")
        if active_member_count(project.id) >= int(settings.get('maxMembers', 10)):
            raise PermissionDeniedError("Project member limit reached")
        membership = ProjectMember(
            project_id=project.id,
            user_id=user.id,
            username=user.username,
            role='member',
            permissions=dict(MEMBER_PERMISSIONS),
            status='active',
        )
        db.session.add(membership)

    project.add_member_ref(user.id, user.username)
    ProjectLog.record(project.id, user.id, 'member_joined', {'username': user.username})
    db.session.commit()
    return project.to_dict()


def get_project(project_id) -> Dict[str, Any]:
    project = get_project_or_404(project_id)
    data = project.to_dict()
    members = ProjectMember.query.filter_by(project_id=project.id, status='active').all()
    data['memberDetails'] = [m.to_dict() for m in members]
    return data


def member_count(project_id) -> int:
    get_project_or_404(project_id)
    return active_member_count(project_id)


def file_count(project_id) -> int:
    project = get_project_or_404(project_id)
    return ProjectFileStore.for_project(project).count_active_files()


def user_projects(user_id) -> List[Dict[str, Any]]:
    rows = (
        db.session.query(Project, ProjectMember)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == user_id, ProjectMember.status == 'active')
        .order_by(ProjectMember.joined_at.desc(), ProjectMember.id.desc())
        .all()
    )
    projects = []
    for project, membership in rows:
        data = project.to_dict()
        data['role'] = membership.role
        data['joined_at'] = membership.joined_at.isoformat() if membership.joined_at else None
        projects.append(data)
    return projects


def update_settings(project_id, settings, user_id=None) -> Dict[str, Any]:
    project = get_project_or_404(project_id)
    if not isinstance(settings, dict):
        raise ValidationError("Settings must be an object")

    if 'allowJoin' in settings and not isinstance(settings['allowJoin'], bool):
        raise ValidationError("allowJoin must be a boolean")

    if 'maxMembers' in settings:
        max_members = settings['maxMembers']
        if isinstance(max_members, bool) or not isinstance(max_members, int) \
                or not 1 <= max_members <= MAX_MEMBERS_LIMIT:
            raise ValidationError(f"maxMembers must be an integer between 1 and {MAX_MEMBERS_LIMIT}")
        current = active_member_count(project.id)
        if max_members < current:
            raise ValidationError(f"maxMembers cannot be lower than the current member count ({current})")

    merged = dict(project.settings or {})
    merged.update(settings)
    project.settings = merged
    project.updated_at = utcnow()
    ProjectLog.record(project.id, user_id, 'settings_updated', {'settings': settings})
    db.session.commit()
    return project.get_settings()


def delete_project(project_id) -> Dict[str, Any]:
    project = get_project_or_404(project_id)
    store = ProjectFileStore.for_project(project)
    try:
        dropped = store.drop_tables()
        # project_members rows go with the project through the member_rows cascade
        ProjectLog.query.filter_by(project_id=project.id).delete()
        ProjectInvitation.query.filter_by(project_id=project.id).delete()
        AIConversation.query.filter_by(project_id=project.id).delete()
        CodeModification.query.filter_by(project_id=project.id).delete()
        db.session.delete(project)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(json.dumps({
        'event': 'project_deleted',
        'project_id': project_id,
        'dropped_tables': dropped,
    }))
    return {'projectId': project_id, 'droppedTables': dropped}


def log_activity(project_id, user_id, action, details=None) -> ProjectLog:
    entry = ProjectLog.record(project_id, user_id, action, details)
    db.session.commit()
    return entry


def get_logs(project_id, limit: Optional[int] = 50) -> List[Dict[str, Any]]:
    get_project_or_404(project_id)
    query = ProjectLog.query.filter_by(project_id=project_id).order_by(
        ProjectLog.created_at.desc(), ProjectLog.id.desc()
    )
    if limit:
        query = query.limit(limit)
    return [entry.to_dict() for entry in query.all()]


def _reorganize_target(file_name: str) -> Optional[str]:
    if file_name in REORGANIZE_LAYOUT:
        return REORGANIZE_LAYOUT[file_name]
    if file_name.endswith('.vue'):
        return 'components'
    return None


def reorganize(project_id, user_id=None) -> Dict[str, Any]:
    """Move root-level files into the preset folder layout"""
    project = get_project_or_404(project_id)
    store = ProjectFileStore.for_project(project)
    moved = []
    created_by = str(user_id) if user_id is not None else 'system'
    try:
        for item in store.list_items('/'):
            if item['item_type'] != 'file':
                continue
            target = _reorganize_target(item['file_name'])
            if target is None:
                continue
            result = store.move_file(item['file_path'], f'/{target}', created_by)
            moved.append({'from': item['file_path'], 'to': result['file_path']})

        ProjectLog.record(project.id, created_by, 'structure_reorganized', {'moved': moved})
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(json.dumps({
        'event': 'structure_reorganized',
        'project_id': project.id,
        'moved': len(moved),
    }))
    return {'moved': moved, 'tree': store.file_tree()}
