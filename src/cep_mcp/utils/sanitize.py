"""Text sanitization utilities for untrusted and generated text."""

import re

REDACTED = "[redacted]"

_WHITESPACE_CONTROL_CHARS = re.compile(r"[\t\n\v\f\r\x85]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_SPACES = re.compile(r" {2,}")

_URL = re.compile(r"\b(?:https?://|www\.)[^\s)]+", re.IGNORECASE)
_EMAIL = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
# Bare hostnames; placeholder names stay readable
_DOMAIN = re.compile(
    r"\b(?!(?:localhost|local|example|example\.com)\b)(?:[a-z0-9-]+\.)+[a-z]{2,}\b",
    re.IGNORECASE,
)


def sanitize_text(text: str | None, max_length: int = 500) -> str | None:
    """
    Sanitize untrusted text fields.

    Line breaks and tabs become spaces, other control characters are
    removed, runs of spaces collapse to one, and the result is truncated
    to max_length.

    Args:
        text: Text to sanitize (may be None)
        max_length: Maximum length before truncation

    Returns:
        Sanitized text or None if input was None
    """
    if text is None:
        return None

    text = _WHITESPACE_CONTROL_CHARS.sub(" ", text)
    text = _CONTROL_CHARS.sub("", text)
    text = _SPACES.sub(" ", text)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text.strip()


def redact_contact_details(text: str) -> str:
    """Replace URLs, email addresses and domain names with a redaction marker."""
    text = _URL.sub(REDACTED, text)
    text = _EMAIL.sub(REDACTED, text)
    return _DOMAIN.sub(REDACTED, text)
