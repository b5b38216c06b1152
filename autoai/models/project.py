"""
Project Models

FLOW OVERVIEW
- Project: a workspace owning one file table plus one table per folder.
  • members / member_ids / settings are JSON columns; reassign them, never mutate in place.
- ProjectMember: role + JSON permissions per (project, user).
- ProjectLog: activity trail written by the services (user_id may be 'system').
"""

from .database import db
from .utils import utcnow

DEFAULT_SETTINGS = {
    'allowJoin': True,
    'maxMembers': 10,
    'fileTypes': ['js', 'ts', 'jsx', 'tsx', 'vue', 'html', 'css', 'scss', 'json', 'md', 'txt'],
}

OWNER_PERMISSIONS = {
    'canEdit': True,
    'canDelete': True,
    'canInvite': True,
    'canManageFiles': True,
    'canViewLogs': True,
}

MEMBER_PERMISSIONS = {
    'canEdit': True,
    'canManageFiles': True,
}

VIEWER_PERMISSIONS = {
    'canView': True,
}


class Project(db.Model):
    """Project model"""
    __tablename__ = 'projects'

    id = db.Column(db.String(8), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(30), default='vue')
    created_by = db.Column(db.String(50))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    members = db.Column(db.JSON, default=list)
    member_ids = db.Column(db.JSON, default=list)
    settings = db.Column(db.JSON, default=lambda: dict(DEFAULT_SETTINGS))
    status = db.Column(db.String(20), default='active')  # active, archived
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    member_rows = db.relationship('ProjectMember', backref='project', lazy=True,
                                  cascade='all, delete-orphan')

    def get_settings(self):
        """Settings merged over the defaults"""
        merged = dict(DEFAULT_SETTINGS)
        merged.update(self.settings or {})
        return merged

    def add_member_ref(self, user_id, username):
        """Append to the denormalized JSON member lists"""
        ids = list(self.member_ids or [])
        names = list(self.members or [])
        if user_id not in ids:
            ids.append(user_id)
        if username not in names:
            names.append(username)
        self.member_ids = ids
        self.members = names

    def remove_member_ref(self, user_id, username):
        """Remove from the denormalized JSON member lists"""
        self.member_ids = [i for i in (self.member_ids or []) if i != user_id]
        self.members = [n for n in (self.members or []) if n != username]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'type': self.type,
            'created_by': self.created_by,
            'created_by_id': self.created_by_id,
            'members': list(self.members or []),
            'member_ids': list(self.member_ids or []),
            'settings': self.get_settings(),
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Project {self.id} {self.name}>'


class ProjectMember(db.Model):
    """Membership of a user in a project"""
    __tablename__ = 'project_members'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(8), db.ForeignKey('projects.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    username = db.Column(db.String(50))
    role = db.Column(db.String(20), default='member')  # owner, member, viewer
    permissions = db.Column(db.JSON, default=dict)
    status = db.Column(db.String(20), default='active')  # active, inactive
    joined_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('project_id', 'user_id', name='unique_project_member'),
    )

    user = db.relationship('User', lazy=True)

    def is_active(self):
        return self.status == 'active'

    def to_dict(self):
        data = {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'username': self.username,
            'role': self.role,
            'permissions': dict(self.permissions or {}),
            'status': self.status,
            'joined_at': self.joined_at.isoformat() if self.joined_at else None,
        }
        if self.user is not None:
            data['email'] = self.user.email
            data['avatar'] = self.user.avatar
        return data


class ProjectLog(db.Model):
    """Project activity log entry"""
    __tablename__ = 'project_logs'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(8), nullable=False, index=True)
    user_id = db.Column(db.String(50))
    action = db.Column(db.String(100), nullable=False)
    details = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    @classmethod
    def record(cls, project_id, user_id, action, details=None):
        """Add a log entry to the current session; the caller commits"""
        entry = cls(
            project_id=project_id,
            user_id=str(user_id) if user_id is not None else 'system',
            action=action,
            details=details or {},
        )
        db.session.add(entry)
        return entry

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'action': self.action,
            'details': self.details or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
