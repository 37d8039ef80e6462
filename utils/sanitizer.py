"""
Input Sanitization Module

Cleans free-text fields (names, descriptions, categories) before they are
stored. Output is JSON, so HTML escaping is left to whatever renders it;
here we only strip control characters, normalise whitespace and enforce
length limits.
"""

import re

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')


def sanitize_text(text, max_length=2000):
    """
    Sanitize multi-line text such as a description.

    Newlines and tabs are preserved; other control characters and null
    bytes are removed.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 2000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = CONTROL_CHARS.sub('', text).strip()

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_name(name, max_length=200):
    """
    Sanitize a single-line name (dish, template, person).

    Args:
        name: The name to sanitize
        max_length: Maximum allowed length (default 200)

    Returns:
        Sanitized name; empty string if nothing is left after cleaning
    """
    if not name:
        return ''

    if not isinstance(name, str):
        name = str(name)

    # Remove control characters and null bytes, including newlines
    name = re.sub(r'[\x00-\x1f\x7f-\x9f]', ' ', name)

    # Collapse multiple spaces
    name = re.sub(r'\s+', ' ', name).strip()

    if len(name) > max_length:
        name = name[:max_length].rstrip()

    return name


def sanitize_email(email, max_length=255):
    """Trim and lower-case an email address; no format validation."""
    if not email:
        return ''

    if not isinstance(email, str):
        email = str(email)

    email = re.sub(r'\s+', '', email).lower()
    return email[:max_length]
