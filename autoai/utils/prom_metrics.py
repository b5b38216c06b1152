"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_ai_chat(...): record project / general AI chat outcomes
- observe_file_operation(...): record virtual file tree mutations
- observe_llm_tokens(...): record prompt / completion token usage
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'autoai_http_requests_total', 'Total HTTP requests', ['endpoint', 'method', 'status']
)

REQUEST_LATENCY = Histogram(
    'autoai_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

AI_CHATS = Counter(
    'autoai_ai_chats_total', 'AI chat requests', ['kind', 'status']
)

FILE_OPERATIONS = Counter(
    'autoai_file_operations_total', 'Virtual file tree mutations', ['operation']
)

LLM_TOKENS = Counter(
    'autoai_llm_tokens_total', 'LLM tokens consumed', ['direction']
)


def observe_request(endpoint: str, method: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, method=method, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_ai_chat(kind: str, status: str) -> None:
    AI_CHATS.labels(kind=kind, status=status).inc()


def observe_file_operation(operation: str) -> None:
    FILE_OPERATIONS.labels(operation=operation).inc()


def observe_llm_tokens(prompt_tokens: int, completion_tokens: int) -> None:
    if prompt_tokens:
        LLM_TOKENS.labels(direction='prompt').inc(prompt_tokens)
    if completion_tokens:
        LLM_TOKENS.labels(direction='completion').inc(completion_tokens)


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    # Default registry
    return generate_latest()
