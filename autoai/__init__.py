"""
AutoAI Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (test mapping or env-based Config), configure logging.
  • Init the database and create the fixed tables.
  • Register blueprints under /api: main, auth, projects + files, ai, friends,
    invitations, team.
  • Register global error handlers and request logging / metrics hooks.
"""

import logging

from flask import Flask
from .models import db
from .routes import (
    auth_bp, main_bp, projects_bp, files_bp, ai_bp, friends_bp, invitations_bp, team_bp,
)
from .config import Config


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__)

    # Configuration
    if test_config:
        # Use test configuration if provided
        app.config.update(test_config)
    else:
        # Use environment-based configuration
        app.config.from_object(Config())

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    # File contents and chat replies are often Chinese
    app.json.ensure_ascii = bool(app.config.get('JSON_AS_ASCII', False))

    # Initialize extensions
    db.init_app(app)
    with app.app_context():
        db.create_all()

    # Register blueprints
    app.register_blueprint(main_bp, url_prefix='/api')
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(projects_bp, url_prefix='/api/projects')
    app.register_blueprint(files_bp, url_prefix='/api/projects')
    app.register_blueprint(ai_bp, url_prefix='/api/ai')
    app.register_blueprint(friends_bp, url_prefix='/api/friends')
    app.register_blueprint(invitations_bp, url_prefix='/api/invitations')
    app.register_blueprint(team_bp, url_prefix='/api/team')

    # Register error handlers and request hooks
    from .utils.error_handlers import register_error_handlers
    from .utils.request_logging import register_request_hooks
    register_error_handlers(app)
    register_request_hooks(app)

    return app
