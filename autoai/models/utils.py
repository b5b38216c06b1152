"""
Model Utilities

This module contains identifier and timestamp helpers for the models package.
"""

import secrets
import string
import time
from datetime import datetime, timezone

PROJECT_ID_ALPHABET = string.ascii_uppercase + string.digits
BASE36_ALPHABET = string.digits + string.ascii_lowercase


def utcnow():
    """Naive UTC timestamp, matching the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_project_id(length=8):
    """Generate an 8-character project ID from A-Z0-9"""
    return ''.join(secrets.choice(PROJECT_ID_ALPHABET) for _ in range(length))


def generate_deleted_suffix():
    """Suffix appended to a soft-deleted file path: -deleted-<epoch ms>-<9 base36 chars>"""
    token = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(9))
    return f"-deleted-{int(time.time() * 1000)}-{token}"
