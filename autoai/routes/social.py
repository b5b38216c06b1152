"""
Friends, Invitation and Team Routes

FLOW OVERVIEW
- friends_bp (/api/friends)
  • /<user_id> [GET], /add [POST], /respond [POST], /pending/<user_id> [GET]
  • /chat/<user_id>/<friend_id> [GET], /chat/send [POST]
- invitations_bp (/api/invitations)
  • /<user_id> [GET], /respond [POST]
- team_bp (/api/team)
  • /my-projects/<user_id> [GET], /project-members/<project_id> [GET]
  • /remove-member [POST], /toggle-ban-member [POST], /invite-member [POST]
"""

from flask import Blueprint

from ..utils import social_service
from ..utils.api_utils import request_validator, response_formatter

friends_bp = Blueprint('friends', __name__)
invitations_bp = Blueprint('invitations', __name__)
team_bp = Blueprint('team', __name__)


def _json_with(*fields):
    """(data, None) for a JSON body carrying every field, else (None, error response)"""
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return None, response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, *fields)
    if not ok:
        return None, response_formatter.failure(error)
    return data, None


def _int_fields(data, *fields):
    values = []
    for field in fields:
        ok, value, error = request_validator.int_field(data, field)
        if not ok:
            return None, response_formatter.failure(error)
        values.append(value)
    return values, None


# ----------------------------------------------------------------------
# Friends
# ----------------------------------------------------------------------

@friends_bp.route('/<int:user_id>', methods=['GET'])
def list_friends(user_id):
    return response_formatter.success(social_service.list_friends(user_id))


@friends_bp.route('/add', methods=['POST'])
def add_friend():
    data, failure = _json_with('userId', 'friendUsername')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'userId')
    if failure:
        return failure
    friendship = social_service.add_friend(ids[0], data['friendUsername'])
    return response_formatter.success({'id': friendship.id, 'status': friendship.status}, 'Friend request sent')


@friends_bp.route('/respond', methods=['POST'])
def respond_friend():
    data, failure = _json_with('userId', 'friendId', 'action')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'userId', 'friendId')
    if failure:
        return failure
    friendship = social_service.respond_friend_request(ids[0], ids[1], data['action'])
    return response_formatter.success({'id': friendship.id, 'status': friendship.status}, 'Friend request answered')


@friends_bp.route('/pending/<int:user_id>', methods=['GET'])
def pending(user_id):
    return response_formatter.success(social_service.pending_requests(user_id))


@friends_bp.route('/chat/<int:user_id>/<int:friend_id>', methods=['GET'])
def chat_messages(user_id, friend_id):
    return response_formatter.success(social_service.chat_messages(user_id, friend_id))


@friends_bp.route('/chat/send', methods=['POST'])
def send_message():
    data, failure = _json_with('senderId', 'receiverId', 'message')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'senderId', 'receiverId')
    if failure:
        return failure
    chat = social_service.send_message(ids[0], ids[1], data['message'], data.get('messageType') or 'text')
    return response_formatter.success(chat.to_dict(), 'Message sent', 201)


# ----------------------------------------------------------------------
# Invitations
# ----------------------------------------------------------------------

@invitations_bp.route('/<int:user_id>', methods=['GET'])
def list_invitations(user_id):
    return response_formatter.success(social_service.list_invitations(user_id))


@invitations_bp.route('/respond', methods=['POST'])
def respond_invitation():
    data, failure = _json_with('invitationId', 'userId', 'action')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'invitationId', 'userId')
    if failure:
        return failure
    invitation = social_service.respond_invitation(ids[0], ids[1], data['action'])
    return response_formatter.success(invitation.to_dict(), f"Invitation {invitation.status}")


# ----------------------------------------------------------------------
# Team
# ----------------------------------------------------------------------

@team_bp.route('/my-projects/<int:user_id>', methods=['GET'])
def my_projects(user_id):
    return response_formatter.success(social_service.my_projects(user_id))


@team_bp.route('/project-members/<project_id>', methods=['GET'])
def project_members(project_id):
    return response_formatter.success(social_service.project_members(project_id))


@team_bp.route('/remove-member', methods=['POST'])
def remove_member():
    data, failure = _json_with('projectId', 'userId')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'userId')
    if failure:
        return failure
    social_service.remove_member(data['projectId'], ids[0])
    return response_formatter.success(None, 'Member removed')


@team_bp.route('/toggle-ban-member', methods=['POST'])
def toggle_ban_member():
    data, failure = _json_with('projectId', 'userId')
    if failure:
        return failure
    ids, failure = _int_fields(data, 'userId')
    if failure:
        return failure
    membership = social_service.toggle_ban(data['projectId'], ids[0], bool(data.get('ban', True)))
    return response_formatter.success(membership.to_dict(), 'Member banned' if data.get('ban', True) else 'Member unbanned')


@team_bp.route('/invite-member', methods=['POST'])
def invite_member():
    data, failure = _json_with('projectId', 'username')
    if failure:
        return failure
    invitation = social_service.invite_member(data['projectId'], data['username'], data.get('message'))
    return response_formatter.success(invitation.to_dict(), 'Invitation sent', 201)
