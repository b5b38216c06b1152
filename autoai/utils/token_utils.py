"""
Token utilities using tiktoken

FLOW OVERVIEW
- get_encoding(): cl100k_base, cached; DeepSeek has no public tiktoken mapping.
- count_tokens(text): token count of a string.
- count_message_tokens(messages): chat messages incl. per-message overhead.
- trim_messages_to_budget(messages, budget): drop the oldest history until it fits.
"""

from functools import lru_cache
from typing import Dict, List

import tiktoken

ENCODING_NAME = 'cl100k_base'
# role/separator tokens added per chat message
MESSAGE_OVERHEAD = 4


@lru_cache(maxsize=1)
def get_encoding():
    return tiktoken.get_encoding(ENCODING_NAME)


def count_tokens(text: str) -> int:
    if not text:
        return 0
    return len(get_encoding().encode(text))


def count_message_tokens(messages: List[Dict[str, str]]) -> int:
    return sum(count_tokens(m.get('content') or '') + MESSAGE_OVERHEAD for m in messages)


def trim_messages_to_budget(messages: List[Dict[str, str]], budget: int) -> List[Dict[str, str]]:
    """Keep the newest messages whose total stays within budget (oldest dropped first)"""
    if budget is None or budget <= 0:
        return []
    kept: List[Dict[str, str]] = []
    used = 0
    for message in reversed(messages):
        cost = count_tokens(message.get('content') or '') + MESSAGE_OVERHEAD
        if used + cost > budget:
            break
        kept.append(message)
        used += cost
    kept.reverse()
    return kept
