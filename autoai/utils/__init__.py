"""
Utilities Package

This package contains the service layer (accounts, projects, file store, AI chat,
social) and the helper modules the blueprints share.
"""

from . import auth_utils
from . import validators
from . import error_handlers
from . import project_service
from . import social_service
from . import ai_service

__all__ = [
    'auth_utils',
    'validators',
    'error_handlers',
    'project_service',
    'social_service',
    'ai_service',
]
