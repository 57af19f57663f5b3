"""Validation helpers for keybridge."""
from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple


def validate_app_id(app_id: str) -> Tuple[bool, str]:
    """Validate app identifier (letters, digits, '.', '_' or '-', max 50 chars)."""
    if not app_id:
        return False, "App ID is required"
    if not isinstance(app_id, str):
        return False, "App ID must be a string"
    if len(app_id) > 50:
        return False, "App ID is too long"
    if not re.match(r'^[a-zA-Z0-9][a-zA-Z0-9_.-]*$', app_id):
        return False, "App ID must start with alphanumeric and use only letters, numbers, '.', '_' or '-'"
    return True, ""


def validate_positive_int(value: Any, label: str) -> Tuple[bool, str]:
    """Validate a positive integer id such as a tier or user id."""
    if value is None or value == '':
        return False, f"{label} is required"
    if isinstance(value, bool):
        return False, f"{label} must be a valid integer"
    try:
        number = int(value)
    except (ValueError, TypeError):
        return False, f"{label} must be a valid integer"
    if number < 1:
        return False, f"{label} must be a positive integer"
    return True, ""


def validate_level_id(level_id: Any) -> Tuple[bool, str]:
    """Validate a membership level id; 0 marks a cancellation."""
    if level_id is None or level_id == '' or isinstance(level_id, bool):
        return False, "Level ID is required"
    try:
        number = int(level_id)
    except (ValueError, TypeError):
        return False, "Level ID must be a valid integer"
    if number < 0:
        return False, "Level ID must not be negative"
    return True, ""


def validate_required_fields(data: Dict, required_fields: List[str]) -> Tuple[bool, str]:
    """Validate that required fields are present in a dictionary."""
    for field in required_fields:
        if field not in data or data[field] is None or data[field] == '':
            return False, f"Missing required field: {field}"
    return True, ""


def validate_url(url: str, schemes: List[str] | None = None) -> Tuple[bool, str]:
    """Validate URL format."""
    if schemes is None:
        schemes = ['http', 'https']
    if not url:
        return False, "URL is required"
    if len(url) > 2048:
        return False, "URL is too long"
    scheme_pattern = '|'.join(schemes)
    pattern = rf'^({scheme_pattern})://[^\s]+'
    if not re.match(pattern, url):
        return False, "Invalid URL format"
    return True, ""


def validate_email(email: str) -> Tuple[bool, str]:
    if not email:
        return False, "E-mail is required"
    if len(email) > 254 or not re.match(r'^[^@\s]+@[^@\s]+\.[^@\s]+$', email):
        return False, "Invalid e-mail address"
    return True, ""


def sanitize_string(value: str, max_length: int = 255) -> str:
    """Sanitize string input."""
    if not value:
        return ""
    value = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', str(value))
    return value[:max_length].strip()
