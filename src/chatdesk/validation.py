"""Shared validation functions for all entry points.

Pure functions: no MCP, FastAPI, or Click dependencies. Every predicate
returns False for non-string input rather than raising.
"""

from __future__ import annotations

from typing import Any

from email_validator import EmailNotValidError, validate_email

VALID_SENDER_TYPES: frozenset[str] = frozenset({"user", "agent", "bot"})

MIN_SEARCH_QUERY_LENGTH = 2

# Values treated as "no value" by the loose emptiness checks below.
_BLANK_VALUES: frozenset[str] = frozenset({"", "0"})


def is_valid_sender_type(value: Any) -> bool:
    return isinstance(value, str) and value in VALID_SENDER_TYPES


def is_valid_message_text(value: Any) -> bool:
    """True unless the stripped text is empty or the literal ``"0"``."""
    return isinstance(value, str) and value.strip() not in _BLANK_VALUES


def is_present(value: Any) -> bool:
    """Like :func:`is_valid_message_text` but without stripping whitespace."""
    return isinstance(value, str) and value not in _BLANK_VALUES


def is_valid_search_query(value: Any) -> bool:
    return isinstance(value, str) and len(value) >= MIN_SEARCH_QUERY_LENGTH


def is_valid_email(value: Any) -> bool:
    """Syntax-only check for a bare ``local@domain.tld`` address.

    Display-name forms (``Name <addr>``) are rejected. No DNS or deliverability
    lookup, and special-use domains such as ``.test`` are allowed.
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        result = validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return "." in result.ascii_domain
