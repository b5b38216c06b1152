"""
Social Models

This module contains Friendship, FriendChat and ProjectInvitation.
"""

from .database import db
from .utils import utcnow


class Friendship(db.Model):
    """Directed friendship row; an accepted friendship has a row in each direction"""
    __tablename__ = 'friendships'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    friend_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.String(20), default='pending')  # pending, accepted, blocked
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'friend_id', name='unique_friendship'),
    )

    user = db.relationship('User', foreign_keys=[user_id], lazy=True)
    friend = db.relationship('User', foreign_keys=[friend_id], lazy=True)


class FriendChat(db.Model):
    """Direct message between two friends"""
    __tablename__ = 'friend_chats'

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    receiver_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    message_type = db.Column(db.String(10), default='text')  # text, image, file
    is_read = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'receiver_id': self.receiver_id,
            'message': self.message,
            'message_type': self.message_type,
            'is_read': bool(self.is_read),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ProjectInvitation(db.Model):
    """Invitation of a user into a project"""
    __tablename__ = 'project_invitations'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(8), db.ForeignKey('projects.id'), nullable=False, index=True)
    inviter_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    invitee_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    message = db.Column(db.Text)
    status = db.Column(db.String(20), default='pending')  # pending, accepted, rejected
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    project = db.relationship('Project', lazy=True)
    inviter = db.relationship('User', foreign_keys=[inviter_id], lazy=True)

    def to_dict(self):
        data = {
            'id': self.id,
            'project_id': self.project_id,
            'inviter_id': self.inviter_id,
            'invitee_id': self.invitee_id,
            'message': self.message,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if self.project is not None:
            data['project_name'] = self.project.name
            data['project_description'] = self.project.description
        if self.inviter is not None:
            data['inviter_name'] = self.inviter.username
        return data
