"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • RFC-like syntax checks; returns sanitized lowercased value.
- validate_username(username)
  • 3-50 chars of letters, digits, underscore, hyphen or CJK characters.
- validate_password(password)
  • Length bounds only; accounts are created from the SPA with simple passwords.
- validate_project_name(name) / validate_item_name(name)
  • Non-blank names; item names are single path segments.
- normalize_path(path)
  • Canonical virtual-file-tree path: leading '/', no duplicate or trailing slashes, no '..'.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize line endings, and remove null bytes.
"""

import re
from typing import Optional, Tuple
from dataclasses import dataclass


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[str] = None


class InputValidator:
    """Input validation for accounts, projects and virtual file paths"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_\-一-鿿]{3,50}$')

    MAX_PATH_LENGTH = 500
    MAX_ITEM_NAME_LENGTH = 255

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email must be a non-empty string")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email cannot be empty")

        # RFC 5321 limits
        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")

        if not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.split('@')
        if len(local_part) > 64:
            return ValidationResult(False, "Email local part too long (max 64 characters)")

        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "Email local part has misplaced dots")

        if domain.startswith('.') or domain.endswith('.') or '..' in domain:
            return ValidationResult(False, "Email domain has misplaced dots")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_username(cls, username: str) -> ValidationResult:
        if not username or not isinstance(username, str):
            return ValidationResult(False, "Username must be a non-empty string")

        username = username.strip()
        if not cls.USERNAME_PATTERN.match(username):
            return ValidationResult(
                False,
                "Username must be 3-50 characters of letters, digits, '_' or '-'"
            )
        return ValidationResult(True, sanitized_value=username)

    @classmethod
    def validate_password(cls, password: str) -> ValidationResult:
        if not password or not isinstance(password, str):
            return ValidationResult(False, "Password must be a non-empty string")

        if len(password) < 6:
            return ValidationResult(False, "Password must be at least 6 characters long")

        if len(password) > 128:
            return ValidationResult(False, "Password too long (max 128 characters)")

        return ValidationResult(True)

    @classmethod
    def validate_project_name(cls, name: str) -> ValidationResult:
        if not name or not isinstance(name, str) or not name.strip():
            return ValidationResult(False, "Project name is required")

        name = cls.sanitize_input(name, max_length=1000)
        if len(name) > 100:
            return ValidationResult(False, "Project name too long (max 100 characters)")

        return ValidationResult(True, sanitized_value=name)

    @classmethod
    def validate_item_name(cls, name: str) -> ValidationResult:
        """A single file or folder name, never a path"""
        if not name or not isinstance(name, str) or not name.strip():
            return ValidationResult(False, "Name is required")

        name = name.strip()
        if '/' in name or '\\' in name:
            return ValidationResult(False, "Name cannot contain path separators")

        if name in ('.', '..'):
            return ValidationResult(False, "Invalid name")

        if '\x00' in name:
            return ValidationResult(False, "Name contains invalid characters")

        if len(name) > cls.MAX_ITEM_NAME_LENGTH:
            return ValidationResult(False, f"Name too long (max {cls.MAX_ITEM_NAME_LENGTH} characters)")

        return ValidationResult(True, sanitized_value=name)

    @classmethod
    def normalize_path(cls, path: str) -> ValidationResult:
        """
        Canonicalize a virtual path ('src//views/' -> '/src/views', '' -> '/')

        Args:
            path: Raw path from a request or an AI reply

        Returns:
            ValidationResult whose sanitized_value is the canonical path
        """
        if path is None:
            return ValidationResult(True, sanitized_value='/')

        if not isinstance(path, str):
            return ValidationResult(False, "Path must be a string")

        parts = [part.strip() for part in path.replace('\\', '/').split('/')]
        parts = [part for part in parts if part and part != '.']

        if any(part == '..' for part in parts):
            return ValidationResult(False, "Path cannot contain '..' segments")

        normalized = '/' + '/'.join(parts)
        if len(normalized) > cls.MAX_PATH_LENGTH:
            return ValidationResult(False, f"Path too long (max {cls.MAX_PATH_LENGTH} characters)")

        return ValidationResult(True, sanitized_value=normalized)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize user input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        sanitized = sanitized.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        return sanitized


def split_path(path: str) -> Tuple[str, str]:
    """Split a canonical path into (parent, name); the parent of '/a' is '/'"""
    parent, _, name = path.rpartition('/')
    return (parent or '/'), name


def join_path(parent: Optional[str], name: str) -> str:
    """Join a canonical parent path and a single name"""
    if not parent or parent == '/':
        return f'/{name}'
    return f'{parent}/{name}'


# Convenience functions for common validations
def validate_email(email: str) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email)


def validate_username(username: str) -> ValidationResult:
    """Validate username"""
    return InputValidator.validate_username(username)


def validate_password(password: str) -> ValidationResult:
    """Validate password"""
    return InputValidator.validate_password(password)


def validate_project_name(name: str) -> ValidationResult:
    """Validate project name"""
    return InputValidator.validate_project_name(name)


def validate_item_name(name: str) -> ValidationResult:
    """Validate a file or folder name"""
    return InputValidator.validate_item_name(name)


def normalize_path(path: str) -> ValidationResult:
    """Canonicalize a virtual file path"""
    return InputValidator.normalize_path(path)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)
