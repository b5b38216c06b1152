"""
Routes Package

This package contains all Flask route blueprints.
"""

from .auth import auth_bp, login_required
from .main import main_bp
from .projects import projects_bp
from .files import files_bp
from .ai import ai_bp
from .social import friends_bp, invitations_bp, team_bp

__all__ = [
    'auth_bp',
    'login_required',
    'main_bp',
    'projects_bp',
    'files_bp',
    'ai_bp',
    'friends_bp',
    'invitations_bp',
    'team_bp',
]
