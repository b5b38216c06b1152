"""
AI Conversation Models

FLOW OVERVIEW
- AIConversation: one project-scoped chat turn plus the actions parsed from the reply.
- CodeModification: one applied file intent (create/modify/delete).
- ChatHistory: general (project-less) chat turns, replayed as context.
"""

from .database import db
from .utils import utcnow


class AIConversation(db.Model):
    __tablename__ = 'ai_conversations'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(8), nullable=False, index=True)
    user_id = db.Column(db.Integer, index=True)
    user_message = db.Column(db.Text, nullable=False)
    ai_response = db.Column(db.Text, nullable=False)
    context = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'user_message': self.user_message,
            'ai_response': self.ai_response,
            'context': self.context or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class CodeModification(db.Model):
    __tablename__ = 'code_modifications'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(8), nullable=False, index=True)
    user_id = db.Column(db.Integer)
    file_path = db.Column(db.String(500), nullable=False)
    action = db.Column(db.String(20), nullable=False, index=True)  # create, modify, delete
    content = db.Column(db.Text)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'file_path': self.file_path,
            'action': self.action,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ChatHistory(db.Model):
    __tablename__ = 'chathistory'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), nullable=False, index=True)
    user_name = db.Column(db.String(50))
    user_message = db.Column(db.Text, nullable=False)
    ai_response = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'user_message': self.user_message,
            'ai_response': self.ai_response,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
