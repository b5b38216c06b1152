"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db, User, Project, ProjectMember, ProjectLog, Friendship, FriendChat,
  ProjectInvitation, AIConversation, CodeModification, ChatHistory.
- Dynamic per-project file tables are defined in file_table.py (SQLAlchemy Core).
"""

from .database import db
from .user import User
from .project import Project, ProjectMember, ProjectLog
from .social import Friendship, FriendChat, ProjectInvitation
from .conversation import AIConversation, CodeModification, ChatHistory

__all__ = [
    'db',
    'User',
    'Project',
    'ProjectMember',
    'ProjectLog',
    'Friendship',
    'FriendChat',
    'ProjectInvitation',
    'AIConversation',
    'CodeModification',
    'ChatHistory',
]
