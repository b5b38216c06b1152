"""
Authentication Utilities

This module contains utility functions for authentication and user management.
Passwords are hashed with bcrypt; services raise AutoAIError subclasses and
leave committing to the functions that own a whole operation.
"""

import logging

import bcrypt
from sqlalchemy import or_, func

from ..models import db, User, Project, ProjectMember, AIConversation
from ..models.utils import utcnow
from .error_handlers import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .validators import validate_email, validate_username, validate_password

logger = logging.getLogger(__name__)


def hash_password(password):
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Not a bcrypt hash
        return False


def _validated(result):
    if not result.is_valid:
        raise ValidationError(result.error_message)
    return result.sanitized_value


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def create_user(username, email, password):
    """Register a new account; username and email must be unused"""
    username = _validated(validate_username(username))
    email = _validated(validate_email(email))
    _validated(validate_password(password))

    existing = User.query.filter(or_(User.username == username, User.email == email)).first()
    if existing is not None:
        raise ConflictError("Username or email already exists")

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    logger.info(f"User registered: {user.username} (id={user.id})")
    return user


def authenticate_user(identifier, password):
    """Authenticate by username or email; only active users can log in"""
    if not identifier or not password:
        raise ValidationError("Username and password are required")

    identifier = identifier.strip()
    user = User.query.filter(
        or_(User.username == identifier, User.email == identifier.lower())
    ).first()

    if user is None or not user.is_active() or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid username or password")

    user.update_last_login()
    db.session.commit()
    return user


def update_user(user_id, username=None, email=None, avatar=None):
    user = get_user(user_id)

    if username is not None:
        username = _validated(validate_username(username))
        clash = User.query.filter(User.username == username, User.id != user.id).first()
        if clash is not None:
            raise ConflictError("Username already exists")
        user.username = username

    if email is not None:
        email = _validated(validate_email(email))
        clash = User.query.filter(User.email == email, User.id != user.id).first()
        if clash is not None:
            raise ConflictError("Email already exists")
        user.email = email

    if avatar is not None:
        user.avatar = avatar

    user.updated_at = utcnow()
    db.session.commit()
    return user


def change_password(user_id, old_password, new_password):
    user = get_user(user_id)
    if not verify_password(old_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    _validated(validate_password(new_password))
    user.password_hash = hash_password(new_password)
    db.session.commit()
    logger.info(f"Password changed for user id={user.id}")
    return user


def list_users():
    return User.query.order_by(User.created_at.desc(), User.id.desc()).all()


def format_time_ago(moment, now=None):
    """'just now', 'N minutes ago', 'N hours ago', 'N days ago', else the date"""
    if moment is None:
        return ''
    now = now or utcnow()
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return 'just now'
    minutes = seconds // 60
    if minutes < 60:
        return f'{minutes} minutes ago'
    hours = minutes // 60
    if hours < 24:
        return f'{hours} hours ago'
    days = hours // 24
    if days < 7:
        return f'{days} days ago'
    return moment.strftime('%Y-%m-%d')


def get_dashboard(user_id):
    """Stats over the user's projects and the five most recently updated ones"""
    from .file_store import ProjectFileStore

    get_user(user_id)
    projects = (
        Project.query
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == user_id, ProjectMember.status == 'active')
        .order_by(Project.updated_at.desc())
        .all()
    )
    project_ids = [p.id for p in projects]

    files = sum(ProjectFileStore.for_project(p).count_active_files() for p in projects)
    members = 0
    ai_chats = 0
    if project_ids:
        members = db.session.query(func.count(func.distinct(ProjectMember.user_id))).filter(
            ProjectMember.project_id.in_(project_ids), ProjectMember.status == 'active'
        ).scalar() or 0
        ai_chats = AIConversation.query.filter(AIConversation.project_id.in_(project_ids)).count()

    now = utcnow()
    recent = []
    for project in projects[:5]:
        data = project.to_dict()
        data['timeAgo'] = format_time_ago(project.updated_at, now)
        recent.append(data)

    return {
        'stats': {
            'projects': len(projects),
            'files': files,
            'members': members,
            'aiChats': ai_chats,
        },
        'recentProjects': recent,
    }
