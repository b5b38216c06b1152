"""
LLM Client

Calls DeepSeek's OpenAI-compatible Chat Completions API through the openai SDK.
The typical flow is:

1) Pick a key at random from DEEPSEEK_API_KEYS.
2) Log the outbound call (masked key, model, message count) without the payload.
3) Call chat.completions.create and normalize the reply into LLMResponse.
4) Log success with elapsed time and usage, or map the failure to LLMServiceError.

In TESTING mode, or when no keys are configured, a deterministic stub reply is
returned so the whole chat pipeline runs offline.
"""

import json
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import current_app, has_app_context
from openai import OpenAI

from .error_handlers import LLMServiceError
from .prom_metrics import observe_llm_tokens

DEFAULT_MODEL = 'deepseek-chat'
DEFAULT_BASE_URL = 'https://api.deepseek.com/v1'


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    provider: str = 'deepseek'


def mask_key(api_key: str) -> str:
    return f"***{api_key[-4:]}" if len(api_key) >= 4 else "***"


class LLMClient:
    """Chat completion client with a stub path for tests and offline development."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _config(self, key: str, default=None):
        if has_app_context():
            return current_app.config.get(key, default)
        return default

    def _api_keys(self) -> List[str]:
        keys = self._config('DEEPSEEK_API_KEYS', '') or ''
        if isinstance(keys, (list, tuple)):
            return [k.strip() for k in keys if k and k.strip()]
        return [k.strip() for k in keys.split(',') if k.strip()]

    def uses_stub(self) -> bool:
        return bool(self._config('TESTING', False)) or not self._api_keys()

    def chat(self, messages: List[Dict[str, str]], temperature: Optional[float] = None,
             max_tokens: Optional[int] = None, model: Optional[str] = None) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: OpenAI-style [{'role': ..., 'content': ...}] list
            temperature: Sampling temperature (AI_TEMPERATURE when omitted)
            max_tokens: Completion cap (AI_MAX_TOKENS when omitted)
            model: Model name (DEEPSEEK_MODEL when omitted)

        Returns:
            LLMResponse with the assistant text and token usage

        Raises:
            LLMServiceError: when the provider call fails
        """
        model = model or self._config('DEEPSEEK_MODEL', DEFAULT_MODEL)
        temperature = temperature if temperature is not None else self._config('AI_TEMPERATURE', 0.7)
        max_tokens = max_tokens or self._config('AI_MAX_TOKENS', 4000)

        if self.uses_stub():
            response = self._stub_response(messages, model)
        else:
            response = self._call_deepseek(messages, model, temperature, max_tokens)

        observe_llm_tokens(response.usage.get('prompt_tokens', 0), response.usage.get('completion_tokens', 0))
        return response

    def _stub_response(self, messages: List[Dict[str, str]], model: str) -> LLMResponse:
        last_user = next((m.get('content') or '' for m in reversed(messages) if m.get('role') == 'user'), '')
        preview = last_user[:50]
        self.logger.info(f"Using stub LLM response (testing or no DEEPSEEK_API_KEYS). model={model}")
        prompt_tokens = sum(len((m.get('content') or '').split()) for m in messages)
        return LLMResponse(
            content=f"Mock AI response for: {preview}",
            model=model,
            usage={
                'prompt_tokens': prompt_tokens,
                'completion_tokens': 20,
                'total_tokens': prompt_tokens + 20,
            },
            provider='stub',
        )

    def _call_deepseek(self, messages: List[Dict[str, str]], model: str,
                       temperature: float, max_tokens: int) -> LLMResponse:
        api_key = random.choice(self._api_keys())
        masked_key = mask_key(api_key)
        base_url = self._config('DEEPSEEK_BASE_URL', DEFAULT_BASE_URL)

        self.logger.info(
            json.dumps({
                'event': 'llm_request_start',
                'provider': 'deepseek',
                'model': model,
                'temperature': temperature,
                'max_tokens': max_tokens,
                'message_count': len(messages),
                'api_key_last4': masked_key,
            })
        )

        started_at = time.time()
        try:
            client = OpenAI(api_key=api_key, base_url=base_url)
            completion = client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=float(temperature),
                max_tokens=int(max_tokens),
            )
        except Exception as e:
            err_text = str(e)
            status = getattr(e, 'status_code', None) or getattr(e, 'status', None)
            self.logger.error(
                json.dumps({
                    'event': 'llm_request_error',
                    'provider': 'deepseek',
                    'model': model,
                    'status': status,
                    'api_key_last4': masked_key,
                    'error': err_text[:500],
                }),
                exc_info=True
            )
            if status == 401 or 'authentication' in err_text.lower():
                message = 'AI service authentication failed'
            elif status == 429 or 'rate limit' in err_text.lower():
                message = 'AI service rate limit exceeded'
            elif status and int(status) >= 500:
                message = 'AI service error'
            else:
                message = 'AI service request failed'
            raise LLMServiceError(f"{message}: {err_text}") from e

        elapsed_ms = int((time.time() - started_at) * 1000)
        usage = getattr(completion, 'usage', None)
        response = LLMResponse(
            content=(completion.choices[0].message.content or '') if completion.choices else '',
            model=getattr(completion, 'model', None) or model,
            usage={
                'prompt_tokens': getattr(usage, 'prompt_tokens', 0) or 0,
                'completion_tokens': getattr(usage, 'completion_tokens', 0) or 0,
                'total_tokens': getattr(usage, 'total_tokens', 0) or 0,
            },
            provider='deepseek',
        )

        self.logger.info(
            json.dumps({
                'event': 'llm_request_success',
                'provider': 'deepseek',
                'model': response.model,
                'elapsed_ms': elapsed_ms,
                'api_key_last4': masked_key,
                'usage': response.usage,
            })
        )
        return response


# Global instance
llm_client = LLMClient()
