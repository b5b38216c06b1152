"""
Request Logger and Metrics

FLOW OVERVIEW
- register_request_hooks(app)
  • before_request: stamp a correlation id and a start time on flask.g.
  • after_request: emit one structured log line, record Prometheus request metrics and
    return the correlation id in X-Request-ID.
- The metrics endpoint itself is not observed.
"""

import json
import logging
import time
import uuid

from flask import g, request

from .prom_metrics import observe_request

logger = logging.getLogger(__name__)

UNOBSERVED_ENDPOINTS = {'main.metrics', 'static'}


def _client_ip():
    return request.environ.get('HTTP_X_FORWARDED_FOR', request.environ.get('REMOTE_ADDR', 'unknown'))


def register_request_hooks(app):
    """Register per-request timing, logging and metrics hooks"""

    @app.before_request
    def start_request_timer():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        g.request_started_at = time.time()

    @app.after_request
    def log_and_observe(response):
        endpoint = request.endpoint or 'unknown'
        if endpoint in UNOBSERVED_ENDPOINTS:
            return response

        started_at = getattr(g, 'request_started_at', None)
        latency = (time.time() - started_at) if started_at else 0.0
        observe_request(endpoint, request.method, response.status_code, latency)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(json.dumps({
            'event': 'http_request',
            'request_id': getattr(g, 'request_id', None),
            'method': request.method,
            'path': request.path,
            'endpoint': endpoint,
            'status': response.status_code,
            'elapsed_ms': int(latency * 1000),
            'client_ip': _client_ip(),
        }))
        if getattr(g, 'request_id', None):
            response.headers['X-Request-ID'] = g.request_id
        return response
