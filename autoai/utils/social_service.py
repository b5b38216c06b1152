"""
Friends, Team and Invitation Services

FLOW OVERVIEW
- Friends
  • add_friend creates a pending row user -> friend; respond() accepts (both directions
    become accepted) or blocks. Chat requires an accepted friendship.
- Team
  • Owner-side management of project members: list, remove, ban / unban.
- Invitations
  • invite() is sent on behalf of the project creator; accepting adds (or reactivates)
    a viewer membership.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, and_, func

from ..models import (
    db, User, Project, ProjectMember, ProjectLog, Friendship, FriendChat, ProjectInvitation,
)
from ..models.project import VIEWER_PERMISSIONS
from ..models.utils import utcnow
from .error_handlers import NotFoundError, PermissionDeniedError, ValidationError
from .project_service import get_project_or_404

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ('text', 'image', 'file')


def _user_or_404(user_id) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _user_summary(user: User) -> Dict[str, Any]:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'avatar': user.avatar,
        'status': user.status,
    }


# ----------------------------------------------------------------------
# Friends
# ----------------------------------------------------------------------

def list_friends(user_id) -> List[Dict[str, Any]]:
    rows = Friendship.query.filter_by(user_id=user_id, status='accepted').all()
    friends = []
    for row in rows:
        data = _user_summary(row.friend)
        data['friendship_id'] = row.id
        data['since'] = row.updated_at.isoformat() if row.updated_at else None
        friends.append(data)
    return sorted(friends, key=lambda f: f['username'].lower())


def add_friend(user_id, friend_username) -> Friendship:
    user = _user_or_404(user_id)
    if not friend_username:
        raise ValidationError("friendUsername is required")
    friend = User.query.filter_by(username=friend_username.strip()).first()
    if friend is None:
        raise NotFoundError("User not found")
    if friend.id == user.id:
        raise ValidationError("You cannot add yourself as a friend")

    existing = Friendship.query.filter(or_(
        and_(Friendship.user_id == user.id, Friendship.friend_id == friend.id),
        and_(Friendship.user_id == friend.id, Friendship.friend_id == user.id),
    )).first()
    if existing is not None:
        raise ValidationError("A friend request or friendship already exists")

    friendship = Friendship(user_id=user.id, friend_id=friend.id, status='pending')
    db.session.add(friendship)
    db.session.commit()
    logger.info(f"Friend request {user.id} -> {friend.id}")
    return friendship


def respond_friend_request(user_id, friend_id, action) -> Friendship:
    """Accept or block the pending request that friend_id sent to user_id"""
    request_row = Friendship.query.filter_by(
        user_id=friend_id, friend_id=user_id, status='pending'
    ).first()
    if request_row is None:
        raise NotFoundError("Friend request not found")

    if action == 'accept':
        request_row.status = 'accepted'
        reverse = Friendship.query.filter_by(user_id=user_id, friend_id=friend_id).first()
        if reverse is None:
            db.session.add(Friendship(user_id=user_id, friend_id=friend_id, status='accepted'))
        else:
            reverse.status = 'accepted'
    else:
        request_row.status = 'blocked'

    request_row.updated_at = utcnow()
    db.session.commit()
    return request_row


def pending_requests(user_id) -> List[Dict[str, Any]]:
    rows = Friendship.query.filter_by(friend_id=user_id, status='pending').order_by(
        Friendship.created_at.desc()
    ).all()
    requests = []
    for row in rows:
        data = _user_summary(row.user)
        data['request_id'] = row.id
        data['requested_at'] = row.created_at.isoformat() if row.created_at else None
        requests.append(data)
    return requests


def _are_friends(user_id, friend_id) -> bool:
    return Friendship.query.filter_by(
        user_id=user_id, friend_id=friend_id, status='accepted'
    ).first() is not None


def chat_messages(user_id, friend_id) -> List[Dict[str, Any]]:
    """Conversation in both directions, oldest first; marks incoming messages read"""
    messages = FriendChat.query.filter(or_(
        and_(FriendChat.sender_id == user_id, FriendChat.receiver_id == friend_id),
        and_(FriendChat.sender_id == friend_id, FriendChat.receiver_id == user_id),
    )).order_by(FriendChat.created_at.asc(), FriendChat.id.asc()).all()

    data = [m.to_dict() for m in messages]
    FriendChat.query.filter_by(
        sender_id=friend_id, receiver_id=user_id, is_read=False
    ).update({'is_read': True})
    db.session.commit()
    return data


def send_message(sender_id, receiver_id, message, message_type='text') -> FriendChat:
    if not message or not str(message).strip():
        raise ValidationError("Message cannot be empty")
    if message_type not in MESSAGE_TYPES:
        raise ValidationError(f"message_type must be one of {', '.join(MESSAGE_TYPES)}")
    _user_or_404(sender_id)
    _user_or_404(receiver_id)
    if not _are_friends(sender_id, receiver_id):
        raise PermissionDeniedError("You can only message your friends")

    chat = FriendChat(
        sender_id=sender_id,
        receiver_id=receiver_id,
        message=message,
        message_type=message_type,
        is_read=False,
    )
    db.session.add(chat)
    db.session.commit()
    return chat


# ----------------------------------------------------------------------
# Team
# ----------------------------------------------------------------------

def my_projects(user_id) -> List[Dict[str, Any]]:
    """Projects created by the user, with active member counts"""
    projects = Project.query.filter_by(created_by_id=user_id).order_by(Project.created_at.desc()).all()
    counts = dict(
        db.session.query(ProjectMember.project_id, func.count(ProjectMember.id))
        .filter(ProjectMember.status == 'active')
        .group_by(ProjectMember.project_id)
        .all()
    )
    result = []
    for project in projects:
        data = project.to_dict()
        data['member_count'] = counts.get(project.id, 0)
        result.append(data)
    return result


def project_members(project_id) -> List[Dict[str, Any]]:
    get_project_or_404(project_id)
    members = ProjectMember.query.filter_by(project_id=project_id).order_by(ProjectMember.joined_at.asc()).all()
    return [m.to_dict() for m in members]


def _membership_or_404(project_id, user_id) -> ProjectMember:
    membership = ProjectMember.query.filter_by(project_id=project_id, user_id=user_id).first()
    if membership is None:
        raise NotFoundError("Member not found")
    return membership


def remove_member(project_id, user_id) -> None:
    project = get_project_or_404(project_id)
    membership = _membership_or_404(project.id, user_id)
    if membership.role == 'owner' or project.created_by_id == membership.user_id:
        raise ValidationError("The project owner cannot be removed")

    project.remove_member_ref(membership.user_id, membership.username)
    db.session.delete(membership)
    ProjectLog.record(project.id, 'system', 'member_removed', {
        'userId': membership.user_id,
        'username': membership.username,
    })
    db.session.commit()


def toggle_ban(project_id, user_id, ban) -> ProjectMember:
    project = get_project_or_404(project_id)
    membership = _membership_or_404(project.id, user_id)
    if membership.role == 'owner' or project.created_by_id == membership.user_id:
        raise ValidationError("The project owner cannot be banned")

    membership.status = 'inactive' if ban else 'active'
    ProjectLog.record(project.id, 'system', 'member_banned' if ban else 'member_unbanned', {
        'userId': membership.user_id,
        'username': membership.username,
    })
    db.session.commit()
    return membership


# ----------------------------------------------------------------------
# Invitations
# ----------------------------------------------------------------------

def invite_member(project_id, username, message: Optional[str] = None) -> ProjectInvitation:
    project = get_project_or_404(project_id)
    if not username:
        raise ValidationError("username is required")
    invitee = User.query.filter_by(username=username.strip()).first()
    if invitee is None:
        raise NotFoundError("User not found")

    membership = ProjectMember.query.filter_by(project_id=project.id, user_id=invitee.id).first()
    if membership is not None and membership.is_active():
        raise ValidationError("User is already a member of this project")

    pending = ProjectInvitation.query.filter_by(
        project_id=project.id, invitee_id=invitee.id, status='pending'
    ).first()
    if pending is not None:
        raise ValidationError("User already has a pending invitation")

    invitation = ProjectInvitation(
        project_id=project.id,
        inviter_id=project.created_by_id,
        invitee_id=invitee.id,
        message=message,
        status='pending',
    )
    db.session.add(invitation)
    ProjectLog.record(project.id, project.created_by_id, 'member_invited', {'username': invitee.username})
    db.session.commit()
    return invitation


def list_invitations(user_id) -> List[Dict[str, Any]]:
    rows = ProjectInvitation.query.filter_by(invitee_id=user_id, status='pending').order_by(
        ProjectInvitation.created_at.desc()
    ).all()
    return [row.to_dict() for row in rows]


def respond_invitation(invitation_id, user_id, action) -> ProjectInvitation:
    invitation = db.session.get(ProjectInvitation, invitation_id)
    if invitation is None or invitation.invitee_id != user_id:
        raise NotFoundError("Invitation not found")
    if invitation.status != 'pending':
        raise ValidationError("Invitation has already been answered")
    if action not in ('accept', 'reject'):
        raise ValidationError("action must be 'accept' or 'reject'")

    if action == 'accept':
        project = get_project_or_404(invitation.project_id)
        user = _user_or_404(user_id)
        membership = ProjectMember.query.filter_by(project_id=project.id, user_id=user.id).first()
        if membership is None:
            db.session.add(ProjectMember(
                project_id=project.id,
                user_id=user.id,
                username=user.username,
                role='member',
                permissions=dict(VIEWER_PERMISSIONS),
                status='active',
            ))
        else:
            membership.status = 'active'
        project.add_member_ref(user.id, user.username)
        ProjectLog.record(project.id, user.id, 'invitation_accepted', {'username': user.username})
        invitation.status = 'accepted'
    else:
        invitation.status = 'rejected'

    invitation.updated_at = utcnow()
    db.session.commit()
    return invitation
