"""
Tests for friends, friend chat, team management and invitations
"""

import pytest

from autoai.models import db, User, FriendChat, ProjectMember
from autoai.models.project import VIEWER_PERMISSIONS
from autoai.utils import social_service
from autoai.utils.auth_utils import hash_password
from autoai.utils.error_handlers import NotFoundError, PermissionDeniedError, ValidationError
from autoai.utils.project_service import join_project, member_count


@pytest.fixture
def friends(test_user, second_user):
    social_service.add_friend(test_user.id, 'seconduser')
    social_service.respond_friend_request(second_user.id, test_user.id, 'accept')
    return test_user, second_user


class TestFriends:
    """Friend requests"""

    def test_add_friend_creates_pending_request(self, test_user, second_user):
        friendship = social_service.add_friend(test_user.id, 'seconduser')
        assert friendship.status == 'pending'
        pending = social_service.pending_requests(second_user.id)
        assert [p['username'] for p in pending] == ['testuser']
        assert social_service.list_friends(test_user.id) == []

    def test_cannot_add_self(self, test_user):
        with pytest.raises(ValidationError):
            social_service.add_friend(test_user.id, 'testuser')

    def test_unknown_friend(self, test_user):
        with pytest.raises(NotFoundError):
            social_service.add_friend(test_user.id, 'nobody')

    def test_duplicate_request_either_direction(self, test_user, second_user):
        social_service.add_friend(test_user.id, 'seconduser')
        with pytest.raises(ValidationError):
            social_service.add_friend(second_user.id, 'testuser')

    def test_accept_makes_both_directions(self, friends):
        user, friend = friends
        assert [f['username'] for f in social_service.list_friends(user.id)] == ['seconduser']
        assert [f['username'] for f in social_service.list_friends(friend.id)] == ['testuser']

    def test_block(self, test_user, second_user):
        social_service.add_friend(test_user.id, 'seconduser')
        row = social_service.respond_friend_request(second_user.id, test_user.id, 'block')
        assert row.status == 'blocked'
        assert social_service.pending_requests(second_user.id) == []

    def test_respond_without_request(self, test_user, second_user):
        with pytest.raises(NotFoundError):
            social_service.respond_friend_request(second_user.id, test_user.id, 'accept')

    def test_list_sorted_by_username(self, db_session, test_user):
        for name in ('zed', 'Amy'):
            db_session.add(User(username=name, email=f'{name}@example.com', password_hash=hash_password('secret123')))
        db_session.commit()
        for name in ('zed', 'Amy'):
            social_service.add_friend(test_user.id, name)
            other = User.query.filter_by(username=name).one()
            social_service.respond_friend_request(other.id, test_user.id, 'accept')
        assert [f['username'] for f in social_service.list_friends(test_user.id)] == ['Amy', 'zed']


class TestFriendChat:
    """Messages between accepted friends"""

    def test_send_and_read(self, friends):
        user, friend = friends
        social_service.send_message(user.id, friend.id, 'hi')
        social_service.send_message(friend.id, user.id, 'hello back')

        messages = social_service.chat_messages(friend.id, user.id)
        assert [m['message'] for m in messages] == ['hi', 'hello back']
        assert FriendChat.query.filter_by(receiver_id=friend.id, is_read=True).count() == 1
        assert FriendChat.query.filter_by(receiver_id=user.id, is_read=False).count() == 1

    def test_non_friends_cannot_chat(self, test_user, second_user):
        with pytest.raises(PermissionDeniedError):
            social_service.send_message(test_user.id, second_user.id, 'hi')

    def test_pending_request_is_not_friendship(self, test_user, second_user):
        social_service.add_friend(test_user.id, 'seconduser')
        with pytest.raises(PermissionDeniedError):
            social_service.send_message(test_user.id, second_user.id, 'hi')

    def test_empty_message(self, friends):
        user, friend = friends
        with pytest.raises(ValidationError):
            social_service.send_message(user.id, friend.id, ' ')

    def test_unknown_message_type(self, friends):
        user, friend = friends
        with pytest.raises(ValidationError):
            social_service.send_message(user.id, friend.id, 'hi', message_type='video')


class TestTeam:
    """Owner-side member management"""

    def test_my_projects_with_member_count(self, test_project, test_user, second_user):
        join_project(test_project.id, second_user.id)
        projects = social_service.my_projects(test_user.id)
        assert [(p['id'], p['member_count']) for p in projects] == [(test_project.id, 2)]
        assert social_service.my_projects(second_user.id) == []

    def test_project_members(self, test_project, second_user):
        join_project(test_project.id, second_user.id)
        members = social_service.project_members(test_project.id)
        assert [(m['username'], m['role']) for m in members] == [('testuser', 'owner'), ('seconduser', 'member')]

    def test_remove_member(self, test_project, second_user):
        join_project(test_project.id, second_user.id)
        social_service.remove_member(test_project.id, second_user.id)
        assert member_count(test_project.id) == 1
        db.session.refresh(test_project)
        assert test_project.members == ['testuser']

    def test_owner_cannot_be_removed(self, test_project, test_user):
        with pytest.raises(ValidationError):
            social_service.remove_member(test_project.id, test_user.id)

    def test_ban_and_unban(self, test_project, second_user):
        join_project(test_project.id, second_user.id)
        member = social_service.toggle_ban(test_project.id, second_user.id, True)
        assert member.status == 'inactive'
        assert member_count(test_project.id) == 1

        member = social_service.toggle_ban(test_project.id, second_user.id, False)
        assert member.status == 'active'

    def test_owner_cannot_be_banned(self, test_project, test_user):
        with pytest.raises(ValidationError):
            social_service.toggle_ban(test_project.id, test_user.id, True)

    def test_unknown_member(self, test_project, second_user):
        with pytest.raises(NotFoundError):
            social_service.toggle_ban(test_project.id, second_user.id, True)


class TestInvitations:
    """Invite, list, accept and reject"""

    def test_invite_and_accept(self, test_project, second_user):
        invitation = social_service.invite_member(test_project.id, 'seconduser', 'join us')
        listed = social_service.list_invitations(second_user.id)
        assert [i['project_name'] for i in listed] == ['Test Project']
        assert listed[0]['inviter_name'] == 'testuser'

        social_service.respond_invitation(invitation.id, second_user.id, 'accept')
        member = ProjectMember.query.filter_by(project_id=test_project.id, user_id=second_user.id).one()
        assert member.role == 'member'
        assert member.permissions == VIEWER_PERMISSIONS
        assert social_service.list_invitations(second_user.id) == []

    def test_reject(self, test_project, second_user):
        invitation = social_service.invite_member(test_project.id, 'seconduser')
        result = social_service.respond_invitation(invitation.id, second_user.id, 'reject')
        assert result.status == 'rejected'
        assert member_count(test_project.id) == 1

    def test_answered_twice(self, test_project, second_user):
        invitation = social_service.invite_member(test_project.id, 'seconduser')
        social_service.respond_invitation(invitation.id, second_user.id, 'reject')
        with pytest.raises(ValidationError):
            social_service.respond_invitation(invitation.id, second_user.id, 'accept')

    def test_someone_elses_invitation(self, test_project, test_user, second_user):
        invitation = social_service.invite_member(test_project.id, 'seconduser')
        with pytest.raises(NotFoundError):
            social_service.respond_invitation(invitation.id, test_user.id, 'accept')

    def test_bad_action(self, test_project, second_user):
        invitation = social_service.invite_member(test_project.id, 'seconduser')
        with pytest.raises(ValidationError):
            social_service.respond_invitation(invitation.id, second_user.id, 'maybe')

    def test_invite_existing_member(self, test_project, test_user):
        with pytest.raises(ValidationError):
            social_service.invite_member(test_project.id, 'testuser')

    def test_duplicate_pending_invitation(self, test_project, second_user):
        social_service.invite_member(test_project.id, 'seconduser')
        with pytest.raises(ValidationError):
            social_service.invite_member(test_project.id, 'seconduser')

    def test_invite_unknown_user(self, test_project):
        with pytest.raises(NotFoundError):
            social_service.invite_member(test_project.id, 'ghost')
