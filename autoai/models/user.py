"""
User Model

This module contains the User account model.
"""

from .database import db
from .utils import utcnow


class User(db.Model):
    """User model for authentication and profile management"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.String(500))
    role = db.Column(db.String(20), default='user')  # user, admin
    status = db.Column(db.String(20), default='active')  # active, inactive, banned
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_login = db.Column(db.DateTime)

    def __init__(self, username, email, password_hash, role='user'):
        """Initialize a new user after validating identity fields"""
        # Import validators here to avoid circular imports
        from ..utils.validators import validate_email, validate_username

        username_validation = validate_username(username)
        if not username_validation.is_valid:
            raise ValueError(username_validation.error_message)

        email_validation = validate_email(email)
        if not email_validation.is_valid:
            raise ValueError(email_validation.error_message)

        if not password_hash:
            raise ValueError("Password hash is required")

        self.username = username_validation.sanitized_value
        self.email = email_validation.sanitized_value
        self.password_hash = password_hash
        self.role = role
        self.status = 'active'

    def is_active(self):
        """Check if user account is active"""
        return self.status == 'active'

    def update_last_login(self):
        """Update the last login timestamp"""
        self.last_login = utcnow()

    def to_dict(self):
        """Public representation, never includes the password hash"""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'avatar': self.avatar,
            'role': self.role,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }

    def __repr__(self):
        return f'<User {self.username}>'
