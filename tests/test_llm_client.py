"""
Tests for the DeepSeek chat client
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from autoai import create_app
from autoai.utils.error_handlers import LLMServiceError
from autoai.utils.llm_client import LLMClient, mask_key


class ProviderError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


@pytest.fixture
def live_app():
    """App configured with API keys and without TESTING, so the real provider path runs"""
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret-key',
        'DEEPSEEK_API_KEYS': 'sk-aaaa1111, sk-bbbb2222',
        'DEEPSEEK_BASE_URL': 'https://llm.example.com/v1',
        'DEEPSEEK_MODEL': 'deepseek-coder',
    })
    with app.app_context():
        yield app


def completion(content='hello', model='deepseek-coder'):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model=model,
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3, total_tokens=15),
    )


class TestStub:
    """Stub replies in TESTING mode or without keys"""

    def test_stub_in_testing(self, app_context):
        client = LLMClient()
        assert client.uses_stub()
        response = client.chat([
            {'role': 'system', 'content': 'be brief'},
            {'role': 'user', 'content': 'x' * 80},
        ])
        assert response.content == 'Mock AI response for: ' + 'x' * 50
        assert response.provider == 'stub'
        assert response.usage['completion_tokens'] == 20

    def test_stub_outside_app_context(self):
        assert LLMClient().uses_stub()


class TestProviderCall:
    """Calls through the openai SDK"""

    def test_success(self, live_app):
        with patch('autoai.utils.llm_client.OpenAI') as openai_cls:
            openai_cls.return_value.chat.completions.create.return_value = completion('Create file: a.js')
            response = LLMClient().chat([{'role': 'user', 'content': 'hi'}], temperature=0.2)

        assert response.content == 'Create file: a.js'
        assert response.provider == 'deepseek'
        assert response.usage == {'prompt_tokens': 12, 'completion_tokens': 3, 'total_tokens': 15}

        kwargs = openai_cls.call_args.kwargs
        assert kwargs['base_url'] == 'https://llm.example.com/v1'
        assert kwargs['api_key'] in ('sk-aaaa1111', 'sk-bbbb2222')
        create_kwargs = openai_cls.return_value.chat.completions.create.call_args.kwargs
        assert create_kwargs['model'] == 'deepseek-coder'
        assert create_kwargs['temperature'] == 0.2
        assert create_kwargs['max_tokens'] == 4000

    @pytest.mark.parametrize('error,prefix', [
        (ProviderError('bad key', 401), 'AI service authentication failed'),
        (ProviderError('slow down', 429), 'AI service rate limit exceeded'),
        (ProviderError('upstream', 503), 'AI service error'),
        (ProviderError('connection reset'), 'AI service request failed'),
    ])
    def test_errors_are_mapped(self, live_app, error, prefix):
        with patch('autoai.utils.llm_client.OpenAI') as openai_cls:
            openai_cls.return_value.chat.completions.create.side_effect = error
            with pytest.raises(LLMServiceError) as excinfo:
                LLMClient().chat([{'role': 'user', 'content': 'hi'}])
        assert excinfo.value.message.startswith(prefix)
        assert excinfo.value.status_code == 502

    def test_empty_choices(self, live_app):
        empty = MagicMock(choices=[], model='deepseek-coder', usage=None)
        with patch('autoai.utils.llm_client.OpenAI') as openai_cls:
            openai_cls.return_value.chat.completions.create.return_value = empty
            response = LLMClient().chat([{'role': 'user', 'content': 'hi'}])
        assert response.content == ''
        assert response.usage['total_tokens'] == 0


def test_mask_key():
    assert mask_key('sk-abcdef1234') == '***1234'
    assert mask_key('ab') == '***'
