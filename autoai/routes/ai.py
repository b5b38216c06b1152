"""
AI Routes

FLOW OVERVIEW
- /api/ai/chat [POST]
  • projectId + message (+ context.previousMessages) → reply, parsed actions, applied intents.
- /api/ai/general-chat [POST]
  • Project-less chat with the user's chathistory as context.
- /api/ai/chat-history/<user_id> [GET, DELETE]: project conversations of a user.
- /api/ai/chathistory[/<user_id>] [GET], /api/ai/chathistory/<user_id> [DELETE]
- /api/ai/history [GET] ?projectId=&limit=, /api/ai/stats [GET] ?projectId=
"""

from flask import Blueprint, request, session

from ..utils import ai_service
from ..utils.api_utils import request_validator, response_formatter
from ..utils.error_handlers import ValidationError
from .projects import acting_user_id

ai_bp = Blueprint('ai', __name__)


@ai_bp.route('/chat', methods=['POST'])
def chat():
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'projectId', 'message')
    if not ok:
        return response_formatter.failure(error)

    context = data.get('context') if isinstance(data.get('context'), dict) else {}
    result = ai_service.process_chat(data['projectId'], acting_user_id(data), data['message'], context)
    return response_formatter.success(result)


@ai_bp.route('/general-chat', methods=['POST'])
def general_chat():
    is_valid, data, error = request_validator.validate_json_request()
    if not is_valid:
        return response_formatter.failure(error)
    ok, error = request_validator.require_fields(data, 'message')
    if not ok:
        return response_formatter.failure(error)

    user_id = acting_user_id(data)
    if user_id is None:
        return response_formatter.failure({'success': False, 'error': 'userId is required'})
    user_name = data.get('userName') or session.get('username')
    result = ai_service.general_chat(user_id, user_name, data['message'])
    return response_formatter.success(result)


@ai_bp.route('/chat-history/<int:user_id>', methods=['GET'])
def user_conversations(user_id):
    limit = request.args.get('limit', 50, type=int)
    project_id = request.args.get('projectId')
    return response_formatter.success(ai_service.conversations(project_id=project_id, user_id=user_id, limit=limit))


@ai_bp.route('/chat-history/<int:user_id>', methods=['DELETE'])
def clear_user_conversations(user_id):
    deleted = ai_service.clear_conversations(user_id)
    return response_formatter.success({'deleted': deleted}, 'Conversation history cleared')


@ai_bp.route('/chathistory', methods=['GET'])
@ai_bp.route('/chathistory/<user_id>', methods=['GET'])
def general_history(user_id=None):
    return response_formatter.success(ai_service.chat_history(user_id))


@ai_bp.route('/chathistory/<user_id>', methods=['DELETE'])
def clear_general_history(user_id):
    deleted = ai_service.clear_chat_history(user_id)
    return response_formatter.success({'deleted': deleted}, 'Chat history cleared')


@ai_bp.route('/history', methods=['GET'])
def project_history():
    project_id = request.args.get('projectId')
    if not project_id:
        raise ValidationError("projectId is required")
    limit = request.args.get('limit', 20, type=int)
    return response_formatter.success(ai_service.project_history(project_id, limit))


@ai_bp.route('/stats', methods=['GET'])
def project_stats():
    project_id = request.args.get('projectId')
    if not project_id:
        raise ValidationError("projectId is required")
    return response_formatter.success(ai_service.project_ai_stats(project_id))
