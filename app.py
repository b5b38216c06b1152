#!/usr/bin/env python3
"""
AutoAI application entry point.

This module selects configuration based on environment variables, creates the
Flask application via `create_app` (which also creates the fixed tables), and
runs the development server when executed directly. In production, a WSGI
server should import `app` from this module.

Environment variables of interest:
- FLASK_ENV: 'testing' uses an in-memory database and stub AI replies.
- DATABASE_URL or DB_HOST/DB_PORT/DB_USER/DB_PASSWORD/DB_NAME: database.
- DEEPSEEK_API_KEYS, DEEPSEEK_BASE_URL, DEEPSEEK_MODEL: LLM access.
- PORT: development server port (default 3000).
"""

import logging
import os

from autoai import create_app

logger = logging.getLogger(__name__)

# Create app instance
if os.getenv('FLASK_ENV') == 'testing':
    # Use test configuration for testing environment
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
    }
    app = create_app(test_config)
else:
    app = create_app()

logger.info(f"AutoAI server ready (database: {app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1]})")

if __name__ == '__main__':
    app.run(debug=os.getenv('FLASK_ENV', 'development') == 'development',
            host='0.0.0.0', port=int(os.getenv('PORT', 3000)))
