"""
End-to-end tests for the project, file, AI and social endpoints
"""

from unittest.mock import patch

from autoai.models import db
from autoai.utils import social_service
from autoai.utils.llm_client import llm_client
from conftest import llm_reply


class TestProjectRoutes:
    """/api/projects"""

    def test_create(self, client, test_user):
        response = client.post('/api/projects/create', json={
            'name': 'Landing', 'description': 'marketing page', 'type': 'html', 'userId': test_user.id,
        })
        assert response.status_code == 201
        data = response.json['data']
        assert data['project']['name'] == 'Landing'
        assert data['files'] == ['/index.html', '/package.json']
        assert data['typeName'] == 'HTML Project'

    def test_create_requires_user(self, client, db_session):
        response = client.post('/api/projects/create', json={'name': 'Nobody'})
        assert response.status_code == 400
        assert response.json['error'] == 'userId is required'

    def test_create_uses_session_user(self, client, test_user):
        with client.session_transaction() as sess:
            sess['user_id'] = test_user.id
        response = client.post('/api/projects/create', json={'name': 'From Session'})
        assert response.status_code == 201
        assert response.json['data']['project']['created_by_id'] == test_user.id

    def test_create_duplicate(self, client, test_project, test_user):
        response = client.post('/api/projects/create', json={'name': 'Test Project', 'userId': test_user.id})
        assert response.status_code == 409

    def test_get_and_counts(self, client, test_project):
        response = client.get(f'/api/projects/{test_project.id}')
        assert response.json['data']['memberDetails'][0]['role'] == 'owner'
        assert client.get(f'/api/projects/{test_project.id}/member-count').json['data'] == {'count': 1}
        assert client.get(f'/api/projects/{test_project.id}/members/count').json['data'] == {'count': 1}
        assert client.get(f'/api/projects/{test_project.id}/files/count').json['data'] == {'count': 5}

    def test_missing_project(self, client, db_session):
        response = client.get('/api/projects/NOPE1234')
        assert response.status_code == 404
        assert response.json == {'success': False, 'error': 'Project not found'}

    def test_join_and_user_projects(self, client, test_project, second_user):
        response = client.post(f'/api/projects/join/{test_project.id}', json={'userId': second_user.id})
        assert response.status_code == 200
        assert 'seconduser' in response.json['data']['members']

        again = client.post(f'/api/projects/join/{test_project.id}', json={'userId': second_user.id})
        assert again.status_code == 409

        projects = client.get(f'/api/projects/user/{second_user.id}').json['data']
        assert [p['role'] for p in projects] == ['member']

    def test_settings(self, client, test_project):
        response = client.put(f'/api/projects/{test_project.id}/settings', json={'settings': {'maxMembers': 3}})
        assert response.status_code == 200
        assert response.json['data']['maxMembers'] == 3

        flat = client.put(f'/api/projects/{test_project.id}/settings', json={'allowJoin': False, 'userId': 1})
        assert flat.json['data']['allowJoin'] is False
        assert 'userId' not in flat.json['data']

        bad = client.put(f'/api/projects/{test_project.id}/settings', json={'maxMembers': 99})
        assert bad.status_code == 400

    def test_logs_and_delete(self, client, test_project):
        logs = client.get(f'/api/projects/{test_project.id}/logs?limit=3').json['data']
        assert len(logs) == 3

        response = client.delete(f'/api/projects/{test_project.id}')
        assert response.status_code == 200
        assert 'test_project' in response.json['data']['droppedTables']
        assert client.get(f'/api/projects/{test_project.id}').status_code == 404

    def test_reorganize(self, client, empty_project):
        response = client.post(f'/api/projects/{empty_project.id}/reorganize', json={})
        assert response.status_code == 200
        assert len(response.json['data']['moved']) == 2


class TestFileRoutes:
    """/api/projects/<id>/files, folders, items, tree and preview"""

    def test_create_folder_and_file(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        folder = client.post(f'{base}/folders', json={'folderName': 'docs', 'parentPath': '/'})
        assert folder.status_code == 201
        assert folder.json['data']['file_path'] == '/docs'

        created = client.post(f'{base}/files', json={
            'fileName': 'guide.md', 'parentPath': '/docs', 'content': '# 指南',
        })
        assert created.status_code == 201
        assert created.json['data']['file_size'] == len('# 指南'.encode('utf-8'))

        content = client.get(f'{base}/file-content?filePath=/docs/guide.md')
        assert content.json['data']['content'] == '# 指南'
        assert '指南'.encode('utf-8') in content.data

    def test_missing_names(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        assert client.post(f'{base}/folders', json={'parentPath': '/'}).status_code == 400
        assert client.post(f'{base}/files', json={'content': 'x'}).status_code == 400

    def test_conflicting_file(self, client, test_project):
        response = client.post(f'/api/projects/{test_project.id}/files', json={'fileName': 'src'})
        assert response.status_code == 409
        assert response.json['success'] is False

    def test_list_and_tree(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        items = client.get(f'{base}/files?parent_path=/src').json['data']
        assert [i['file_name'] for i in items] == ['components', 'views', 'App.vue']

        tree = client.get(f'{base}/file-tree').json['data']
        assert tree[0]['file_path'] == '/src'
        assert len(tree[0]['children']) == 3

    def test_update_file(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        response = client.post(f'{base}/update-file', json={'filePath': '/src/App.vue', 'content': 'new'})
        assert response.status_code == 200
        assert response.json['data']['content'] == 'new'

        missing = client.post(f'{base}/update-file', json={'filePath': '/src/none.vue', 'content': 'x'})
        assert missing.status_code == 404

    def test_items_save_and_delete(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        saved = client.post(f'{base}/items', json={'item_type': 'file', 'file_path': '/notes.txt', 'content': 'n'})
        assert saved.status_code == 200

        deleted = client.delete(f'{base}/items', json={'itemPath': '/notes.txt'})
        assert deleted.status_code == 200
        assert deleted.json['data']['item_type'] == 'file'

        again = client.delete(f'{base}/items', json={'itemPath': '/notes.txt'})
        assert again.status_code == 409

        not_empty = client.delete(f'{base}/items', json={'itemPath': '/src'})
        assert not_empty.status_code == 409
        assert not_empty.json['error'] == 'Folder is not empty'

    def test_cleanup(self, client, test_project):
        base = f'/api/projects/{test_project.id}'
        client.delete(f'{base}/items', json={'itemPath': '/src/App.vue'})
        response = client.post(f'{base}/cleanup')
        assert response.json['data'] == {'deleted': 1}

    def test_preview(self, client, empty_project):
        base = f'/api/projects/{empty_project.id}'
        client.post(f'{base}/files', json={
            'fileName': 'about.html', 'parentPath': '/pages',
            'content': '<link href="site.css"><img src="../logo.png">',
        })
        response = client.get(f'{base}/preview?filePath=/pages/about.html')
        assert response.status_code == 200
        assert response.mimetype == 'text/html'
        body = response.data.decode('utf-8')
        assert f'href="{base}/preview?filePath=/pages/site.css"' in body
        assert f'src="{base}/preview?filePath=/logo.png"' in body

    def test_preview_requires_path(self, client, empty_project):
        response = client.get(f'/api/projects/{empty_project.id}/preview')
        assert response.status_code == 400

    def test_path_traversal(self, client, test_project):
        response = client.get(f'/api/projects/{test_project.id}/file-content?filePath=/../secret')
        assert response.status_code == 400


class TestAIRoutes:
    """/api/ai"""

    def test_chat_applies_intents(self, client, test_project, test_user):
        reply = llm_reply("Create file: src/api.js\n```js\nexport default {}\n```")
        with patch.object(llm_client, 'chat', return_value=reply):
            response = client.post('/api/ai/chat', json={
                'projectId': test_project.id, 'message': 'add api module', 'userId': test_user.id,
            })
        assert response.status_code == 200
        data = response.json['data']
        assert data['applied'][0]['filePath'] == '/src/api.js'
        assert data['actions'][0]['type'] == 'code_modification'

        content = client.get(f'/api/projects/{test_project.id}/file-content?filePath=/src/api.js')
        assert content.json['data']['content'] == 'export default {}\n'

    def test_chat_rollback_returns_error(self, client, test_project, test_user):
        reply = llm_reply("Create file: a.js\n```js\na\n```\nFile operation: delete nothing/here.js")
        with patch.object(llm_client, 'chat', return_value=reply):
            response = client.post('/api/ai/chat', json={
                'projectId': test_project.id, 'message': 'go', 'userId': test_user.id,
            })
        assert response.status_code == 404
        missing = client.get(f'/api/projects/{test_project.id}/file-content?filePath=/a.js')
        assert missing.status_code == 404

    def test_chat_requires_fields(self, client, db_session):
        response = client.post('/api/ai/chat', json={'message': 'hi'})
        assert response.status_code == 400
        assert response.json['error'] == 'Missing required fields: projectId'

    def test_llm_failure_is_502(self, client, test_project, test_user):
        from autoai.utils.error_handlers import LLMServiceError
        with patch.object(llm_client, 'chat', side_effect=LLMServiceError('AI service error: boom')):
            response = client.post('/api/ai/chat', json={
                'projectId': test_project.id, 'message': 'hi', 'userId': test_user.id,
            })
        assert response.status_code == 502
        assert response.json['error'] == 'AI service error: boom'

    def test_general_chat_and_history(self, client, test_user):
        response = client.post('/api/ai/general-chat', json={
            'message': 'what is a closure?', 'userId': test_user.id, 'userName': 'testuser',
        })
        assert response.status_code == 200
        assert response.json['data']['response'] == 'Mock AI response for: what is a closure?'

        history = client.get(f'/api/ai/chathistory/{test_user.id}').json['data']
        assert [h['user_message'] for h in history] == ['what is a closure?']

        cleared = client.delete(f'/api/ai/chathistory/{test_user.id}')
        assert cleared.json['data'] == {'deleted': 1}

    def test_project_history_and_stats(self, client, test_project, test_user):
        client.post('/api/ai/chat', json={'projectId': test_project.id, 'message': 'hi', 'userId': test_user.id})

        history = client.get(f'/api/ai/history?projectId={test_project.id}').json['data']
        assert len(history['conversations']) == 1

        stats = client.get(f'/api/ai/stats?projectId={test_project.id}').json['data']
        assert stats['conversations'] == 1

        conversations = client.get(f'/api/ai/chat-history/{test_user.id}').json['data']
        assert len(conversations) == 1
        assert client.delete(f'/api/ai/chat-history/{test_user.id}').json['data'] == {'deleted': 1}

    def test_history_requires_project(self, client, db_session):
        assert client.get('/api/ai/history').status_code == 400
        assert client.get('/api/ai/stats').status_code == 400


class TestSocialRoutes:
    """/api/friends, /api/invitations, /api/team"""

    def test_friend_flow(self, client, test_user, second_user):
        sent = client.post('/api/friends/add', json={'userId': test_user.id, 'friendUsername': 'seconduser'})
        assert sent.json['data']['status'] == 'pending'

        pending = client.get(f'/api/friends/pending/{second_user.id}').json['data']
        assert [p['username'] for p in pending] == ['testuser']

        answered = client.post('/api/friends/respond', json={
            'userId': second_user.id, 'friendId': test_user.id, 'action': 'accept',
        })
        assert answered.json['data']['status'] == 'accepted'

        message = client.post('/api/friends/chat/send', json={
            'senderId': test_user.id, 'receiverId': second_user.id, 'message': 'hey',
        })
        assert message.status_code == 201

        chat = client.get(f'/api/friends/chat/{second_user.id}/{test_user.id}').json['data']
        assert [m['message'] for m in chat] == ['hey']

        friends = client.get(f'/api/friends/{test_user.id}').json['data']
        assert [f['username'] for f in friends] == ['seconduser']

    def test_chat_with_stranger(self, client, test_user, second_user):
        response = client.post('/api/friends/chat/send', json={
            'senderId': test_user.id, 'receiverId': second_user.id, 'message': 'hey',
        })
        assert response.status_code == 403

    def test_bad_id(self, client, db_session):
        response = client.post('/api/friends/add', json={'userId': 'abc', 'friendUsername': 'x'})
        assert response.status_code == 400
        assert response.json['error'] == 'userId must be an integer'

    def test_invitation_flow(self, client, test_project, second_user):
        invited = client.post('/api/team/invite-member', json={
            'projectId': test_project.id, 'username': 'seconduser', 'message': 'welcome',
        })
        assert invited.status_code == 201
        invitation_id = invited.json['data']['id']

        listed = client.get(f'/api/invitations/{second_user.id}').json['data']
        assert [i['id'] for i in listed] == [invitation_id]

        accepted = client.post('/api/invitations/respond', json={
            'invitationId': invitation_id, 'userId': second_user.id, 'action': 'accept',
        })
        assert accepted.json['data']['status'] == 'accepted'

        members = client.get(f'/api/team/project-members/{test_project.id}').json['data']
        assert [m['username'] for m in members] == ['testuser', 'seconduser']

    def test_team_management(self, client, test_project, test_user, second_user):
        social_service.invite_member(test_project.id, 'seconduser')
        invitation = social_service.list_invitations(second_user.id)[0]
        social_service.respond_invitation(invitation['id'], second_user.id, 'accept')

        banned = client.post('/api/team/toggle-ban-member', json={
            'projectId': test_project.id, 'userId': second_user.id, 'ban': True,
        })
        assert banned.json['data']['status'] == 'inactive'

        mine = client.get(f'/api/team/my-projects/{test_user.id}').json['data']
        assert mine[0]['member_count'] == 1

        owner = client.post('/api/team/remove-member', json={'projectId': test_project.id, 'userId': test_user.id})
        assert owner.status_code == 400

        removed = client.post('/api/team/remove-member', json={
            'projectId': test_project.id, 'userId': second_user.id,
        })
        assert removed.status_code == 200
        db.session.expire_all()
        members = client.get(f'/api/team/project-members/{test_project.id}').json['data']
        assert [m['username'] for m in members] == ['testuser']
