"""
Test configuration and shared fixtures for AutoAI tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Common test utilities
"""

import pytest
from autoai import create_app
from autoai.models import db, User, Project
from autoai.utils.auth_utils import hash_password
from autoai.utils.ai_parser import FileIntent
from autoai.utils.llm_client import LLMResponse
from autoai.utils.project_service import create_project


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'AI_CONTEXT_TOKEN_BUDGET': 6000,
}

TEST_PASSWORD = 'secret123'


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(TEST_CONFIG)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


@pytest.fixture
def test_user(db_session):
    """Create a test user for testing."""
    user = User(
        username='testuser',
        email='test@example.com',
        password_hash=hash_password(TEST_PASSWORD)
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def second_user(db_session):
    """Create a second user for membership and friendship tests."""
    user = User(
        username='seconduser',
        email='second@example.com',
        password_hash=hash_password(TEST_PASSWORD)
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def test_project(db_session, test_user):
    """Create a Vue project owned by test_user (base files included)."""
    result = create_project('Test Project', 'A project for tests', 'vue', test_user.id)
    return db.session.get(Project, result['project']['id'])


@pytest.fixture
def empty_project(db_session, test_user):
    """Create an HTML project and return it; base files are index.html and package.json."""
    result = create_project('Html Site', 'Plain pages', 'html', test_user.id)
    return db.session.get(Project, result['project']['id'])


def llm_reply(content):
    """LLMResponse as returned by the client, for patching llm_client.chat"""
    return LLMResponse(
        content=content,
        model='deepseek-chat',
        usage={'prompt_tokens': 10, 'completion_tokens': 20, 'total_tokens': 30},
        provider='stub',
    )


def intent(kind, path, code=''):
    return FileIntent(id=f'test_{kind}_{path}', kind=kind, path=path, code=code)
