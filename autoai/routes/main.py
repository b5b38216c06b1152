"""
Main Routes

FLOW OVERVIEW
- /api/health [GET]
  • JSON health check including a database ping.
- /api/metrics [GET]
  • Prometheus text exposition.
- /api/search [GET] ?query=&userId=
  • Projects by name/description (10), the user's general chat history (5) and menu entries.
- /api/project-types [GET], /api/project-types/<type> [GET]
"""

from flask import Blueprint, Response, request, current_app
from sqlalchemy import or_, text

from ..models import db, Project, ChatHistory
from ..models.utils import utcnow
from ..utils.api_utils import response_formatter
from ..utils.error_handlers import NotFoundError, ValidationError
from ..utils.project_types import PROJECT_TYPES, get_all_project_types
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST

main_bp = Blueprint('main', __name__)

SEARCH_PROJECT_LIMIT = 10
SEARCH_CHAT_LIMIT = 5

MENU_ENTRIES = [
    {'title': 'Dashboard', 'path': '/dashboard', 'keywords': ['dashboard', 'home', 'overview']},
    {'title': 'Projects', 'path': '/projects', 'keywords': ['project', 'projects', 'workspace']},
    {'title': 'AI Assistant', 'path': '/ai-chat', 'keywords': ['ai', 'chat', 'assistant', 'code']},
    {'title': 'Friends', 'path': '/friends', 'keywords': ['friend', 'friends', 'message']},
    {'title': 'Team', 'path': '/team', 'keywords': ['team', 'member', 'invite', 'invitation']},
    {'title': 'Profile', 'path': '/profile', 'keywords': ['profile', 'account', 'password', 'settings']},
]


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    try:
        db.session.execute(text('SELECT 1'))
        database = 'connected'
    except Exception as e:
        current_app.logger.error(f"Health check database ping failed: {str(e)}")
        database = 'unavailable'
    return response_formatter.success({
        'status': 'healthy' if database == 'connected' else 'degraded',
        'database': database,
        'timestamp': utcnow().isoformat(),
    })


@main_bp.route('/metrics')
def metrics():
    """Prometheus metrics endpoint."""
    output = metrics_latest()
    return Response(output, mimetype=CONTENT_TYPE_LATEST)


@main_bp.route('/search')
def search():
    query = (request.args.get('query') or '').strip()
    if not query:
        raise ValidationError("query is required")
    user_id = request.args.get('userId')
    pattern = f'%{query}%'

    projects = Project.query.filter(
        Project.status == 'active',
        or_(Project.name.ilike(pattern), Project.description.ilike(pattern)),
    ).order_by(Project.updated_at.desc()).limit(SEARCH_PROJECT_LIMIT).all()

    chats = []
    if user_id:
        chats = ChatHistory.query.filter(
            ChatHistory.user_id == str(user_id),
            or_(ChatHistory.user_message.ilike(pattern), ChatHistory.ai_response.ilike(pattern)),
        ).order_by(ChatHistory.created_at.desc()).limit(SEARCH_CHAT_LIMIT).all()

    lowered = query.lower()
    menus = [
        {'title': entry['title'], 'path': entry['path']}
        for entry in MENU_ENTRIES
        if lowered in entry['title'].lower() or any(lowered in k for k in entry['keywords'])
    ]

    return response_formatter.success({
        'projects': [p.to_dict() for p in projects],
        'chats': [c.to_dict() for c in chats],
        'menus': menus,
    })


@main_bp.route('/project-types')
def project_types():
    return response_formatter.success(get_all_project_types())


@main_bp.route('/project-types/<project_type>')
def project_type(project_type):
    if project_type not in PROJECT_TYPES:
        raise NotFoundError(f"Unknown project type: {project_type}")
    config = next(t for t in get_all_project_types() if t['type'] == project_type)
    return response_formatter.success(config)
