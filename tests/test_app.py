from unittest.mock import patch

from autoai.utils import ai_service
from autoai.utils.llm_client import llm_client
from conftest import llm_reply


def test_health_endpoint(client):
    """Test the health check endpoint"""
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.json['data']['status'] == 'healthy'
    assert response.json['data']['database'] == 'connected'


def test_request_id_header(client):
    response = client.get('/api/health', headers={'X-Request-ID': 'abc-123'})
    assert response.headers['X-Request-ID'] == 'abc-123'
    assert client.get('/api/health').headers.get('X-Request-ID')


def test_404_error(client):
    """Test that non-existent routes return the JSON envelope"""
    response = client.get('/api/nonexistent/route/here')
    assert response.status_code == 404
    assert response.json == {'success': False, 'error': 'Resource not found'}


def test_405_error(client):
    response = client.post('/api/health')
    assert response.status_code == 405
    assert response.json['error'] == 'Method not allowed'


def test_project_types(client):
    response = client.get('/api/project-types')
    types = response.json['data']
    assert [t['type'] for t in types] == ['html', 'vue', 'android', 'miniprogram', 'react']
    vue = next(t for t in types if t['type'] == 'vue')
    assert 'src/App.vue' in vue['base_files']


def test_single_project_type(client):
    response = client.get('/api/project-types/react')
    assert response.status_code == 200
    assert response.json['data']['type'] == 'react'

    response = client.get('/api/project-types/cobol')
    assert response.status_code == 404


def test_search(client, test_project, test_user):
    with patch.object(ai_service, 'trim_messages_to_budget', side_effect=lambda m, b: m):
        with patch.object(llm_client, 'chat', return_value=llm_reply('Use a Test runner')):
            ai_service.general_chat(test_user.id, 'testuser', 'how do I test?')

    response = client.get(f'/api/search?query=test&userId={test_user.id}')
    assert response.status_code == 200
    data = response.json['data']
    assert [p['name'] for p in data['projects']] == ['Test Project']
    assert [c['user_message'] for c in data['chats']] == ['how do I test?']
    assert data['menus'] == []


def test_search_menus(client, db_session):
    data = client.get('/api/search?query=team').json['data']
    assert data['menus'] == [{'title': 'Team', 'path': '/team'}]
    assert data['projects'] == []


def test_search_requires_query(client, db_session):
    response = client.get('/api/search')
    assert response.status_code == 400
    assert response.json['error'] == 'query is required'
